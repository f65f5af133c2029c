"""Derived overall state of a multi-relay query.

Never persisted: [derive_overall_state][reqspell.state.aggregator.derive_overall_state]
rebuilds it from scratch on every relay state mutation.
"""

from __future__ import annotations

from dataclasses import dataclass

from .constants import QueryStatus


@dataclass(frozen=True, slots=True)
class OverallQueryState:
    """Aggregate status plus the per-state tallies used for presentation.

    Attributes:
        status: One of the eight [QueryStatus][reqspell.models.constants.QueryStatus] values.
        total_relays: Number of tracked relays.
        connected_count: Relays whose connection is ``connected``.
        receiving_count: Relays whose subscription is ``receiving``.
        eose_count: Relays whose subscription reached ``eose``.
        error_count: Relays whose connection is ``error``.
        disconnected_count: Relays whose connection is ``disconnected``.
        has_received_events: True if any relay delivered at least one event.
        has_active_relays: ``connected_count > 0``.
        all_relays_failed: True if every relay is in a failed terminal
            state (see [RelayState.is_failed][reqspell.models.relay_state.RelayState.is_failed]).
        query_started_at: Start time passed in by the caller.
        first_event_at: Earliest ``first_event_at`` across relays, if any.
    """

    status: QueryStatus
    total_relays: int = 0
    connected_count: int = 0
    receiving_count: int = 0
    eose_count: int = 0
    error_count: int = 0
    disconnected_count: int = 0
    has_received_events: bool = False
    has_active_relays: bool = False
    all_relays_failed: bool = False
    query_started_at: int = 0
    first_event_at: int | None = None
