"""Multi-relay subscription state: tracker, aggregator and presentation.

Attributes:
    RelayStateTracker: Lock-guarded map of per-relay states fed by the
        connection layer.
    derive_overall_state: Pure function from a relay state snapshot to one
        of eight overall statuses.
    present_status: Label, color and animation flag per status.
"""

from .aggregator import derive_overall_state
from .presenter import (
    RelayBadge,
    StatusColor,
    StatusPresentation,
    present_status,
    relay_badge,
    status_tooltip,
)
from .tracker import RelayStateTracker


__all__ = [
    "RelayBadge",
    "RelayStateTracker",
    "StatusColor",
    "StatusPresentation",
    "derive_overall_state",
    "present_status",
    "relay_badge",
    "status_tooltip",
]
