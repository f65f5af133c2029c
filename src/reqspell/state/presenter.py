"""
Presentation of query and relay states.

Pure lookups from a [QueryStatus][reqspell.models.constants.QueryStatus]
or a [RelayState][reqspell.models.relay_state.RelayState] to display
attributes. Colors are abstract tokens (``yellow``, ``green``, ``red``,
``blue``, ``muted``) for the UI layer to map onto its own palette.
"""

from __future__ import annotations

from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, NamedTuple

from reqspell.models.constants import ConnectionState, QueryStatus, SubscriptionState


if TYPE_CHECKING:
    from reqspell.models.query_state import OverallQueryState
    from reqspell.models.relay_state import RelayState


class StatusColor(StrEnum):
    """Abstract color tokens."""

    YELLOW = "yellow"
    GREEN = "green"
    RED = "red"
    BLUE = "blue"
    MUTED = "muted"


class StatusPresentation(NamedTuple):
    """How an overall status is displayed."""

    label: str
    color: StatusColor
    animate: bool


class RelayBadge(NamedTuple):
    """Badge shown next to one relay."""

    text: str
    color: StatusColor


_PRESENTATIONS = MappingProxyType(
    {
        QueryStatus.DISCOVERING: StatusPresentation("DISCOVERING", StatusColor.YELLOW, True),
        QueryStatus.CONNECTING: StatusPresentation("CONNECTING", StatusColor.YELLOW, True),
        QueryStatus.LOADING: StatusPresentation("LOADING", StatusColor.YELLOW, True),
        QueryStatus.LIVE: StatusPresentation("LIVE", StatusColor.GREEN, True),
        QueryStatus.PARTIAL: StatusPresentation("PARTIAL", StatusColor.YELLOW, False),
        QueryStatus.OFFLINE: StatusPresentation("OFFLINE", StatusColor.RED, False),
        QueryStatus.CLOSED: StatusPresentation("CLOSED", StatusColor.MUTED, False),
        QueryStatus.FAILED: StatusPresentation("FAILED", StatusColor.RED, False),
    }
)

_SUBSCRIPTION_BADGES = MappingProxyType(
    {
        SubscriptionState.RECEIVING: RelayBadge("RECEIVING", StatusColor.GREEN),
        SubscriptionState.EOSE: RelayBadge("EOSE", StatusColor.BLUE),
        SubscriptionState.ERROR: RelayBadge("ERROR", StatusColor.RED),
    }
)

_CONNECTION_BADGES = MappingProxyType(
    {
        ConnectionState.CONNECTING: RelayBadge("CONNECTING", StatusColor.YELLOW),
        ConnectionState.ERROR: RelayBadge("ERROR", StatusColor.RED),
        ConnectionState.DISCONNECTED: RelayBadge("OFFLINE", StatusColor.MUTED),
    }
)


def present_status(status: QueryStatus) -> StatusPresentation:
    """Return the label, color and animation flag for *status*."""
    return _PRESENTATIONS[QueryStatus(status)]


def _relays(count: int) -> str:
    return f"{count} relay" if count == 1 else f"{count} relays"


def status_tooltip(state: OverallQueryState) -> str:
    """Return a one-line human description of *state*."""
    status = state.status
    connected, total = state.connected_count, state.total_relays

    if status == QueryStatus.DISCOVERING:
        return "Selecting relays from NIP-65 relay lists"
    if status == QueryStatus.CONNECTING:
        return f"Connecting to {_relays(total)}..."
    if status == QueryStatus.LOADING:
        verb = "Loading events" if state.has_received_events else "Waiting for events"
        return f"{verb} from {connected}/{total} relays"
    if status == QueryStatus.LIVE:
        return f"Streaming live events from {connected}/{total} relays"
    if status == QueryStatus.PARTIAL:
        return f"{connected}/{total} relays active, some failed or disconnected"
    if status == QueryStatus.OFFLINE:
        return "All relays disconnected, showing events received so far"
    if status == QueryStatus.CLOSED:
        return "Query complete, all relays closed"
    return f"Failed to connect to any of {_relays(total)}"


def relay_badge(state: RelayState) -> RelayBadge | None:
    """Return the badge for one relay, or ``None`` when nothing noteworthy.

    The subscription axis wins over the connection axis: a relay that
    reached EOSE and then disconnected still shows ``EOSE``.
    """
    badge = _SUBSCRIPTION_BADGES.get(state.subscription_state)
    if badge is None:
        badge = _CONNECTION_BADGES.get(state.connection_state)
    return badge
