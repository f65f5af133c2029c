"""
Overall status of a multi-relay query.

[derive_overall_state()][reqspell.state.aggregator.derive_overall_state]
is a pure, total function of a relay state snapshot: it holds nothing
across calls and is meant to be re-run after every relay state mutation.
A query that was ``live`` therefore drops to ``offline`` the moment its
last connected relay disconnects, without waiting for another event.

Decision order (the first matching branch wins):

1. no relays -- ``discovering``;
2. global EOSE not reached:
   every relay failed and nothing received -- ``failed``;
   nothing connected, receiving or at EOSE and nothing received --
   ``connecting``; otherwise ``loading``;
3. global EOSE reached while streaming:
   some relay connected and some relay disconnected or errored --
   ``partial``; some relay connected -- ``live``; events were received --
   ``offline``; otherwise ``failed``;
4. global EOSE reached, not streaming -- ``closed``.

Relays still ``pending`` or ``connecting`` count neither as connected nor
as failed, so a mix of connected and connecting relays is ``live``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from reqspell.models.constants import ConnectionState, QueryStatus, SubscriptionState
from reqspell.models.query_state import OverallQueryState


if TYPE_CHECKING:
    from collections.abc import Mapping

    from reqspell.models.relay_state import RelayState


def derive_overall_state(
    relay_states: Mapping[str, RelayState],
    global_eose_reached: bool,
    is_streaming: bool,
    query_started_at: int = 0,
) -> OverallQueryState:
    """Combine per-relay states into one [OverallQueryState][reqspell.models.query_state.OverallQueryState].

    Args:
        relay_states: Snapshot keyed by normalized relay URL.
        global_eose_reached: True once every relay that will ever answer
            has sent EOSE (as decided by the subscription layer).
        is_streaming: True if the subscription stays open after EOSE.
        query_started_at: Start time echoed back for presentation.

    Returns:
        The derived state. Counts are filled in whichever branch decides the
        status. Never raises.
    """
    connected = receiving = eose = errors = disconnected = failed = 0
    progressed = False
    has_events = False
    first_event_at: int | None = None

    for state in relay_states.values():
        if state.connection_state == ConnectionState.CONNECTED:
            connected += 1
        elif state.connection_state == ConnectionState.ERROR:
            errors += 1
        elif state.connection_state == ConnectionState.DISCONNECTED:
            disconnected += 1

        if state.subscription_state == SubscriptionState.RECEIVING:
            receiving += 1
        elif state.subscription_state == SubscriptionState.EOSE:
            eose += 1

        if state.is_failed:
            failed += 1
        if state.made_progress:
            progressed = True
        if state.event_count > 0:
            has_events = True
        if state.first_event_at is not None and (
            first_event_at is None or state.first_event_at < first_event_at
        ):
            first_event_at = state.first_event_at

    total = len(relay_states)
    all_failed = total > 0 and failed == total

    if total == 0:
        status = QueryStatus.DISCOVERING
    elif not global_eose_reached:
        if all_failed and not has_events:
            status = QueryStatus.FAILED
        elif connected == 0 and not progressed and not has_events:
            status = QueryStatus.CONNECTING
        else:
            status = QueryStatus.LOADING
    elif is_streaming:
        if connected > 0 and (disconnected > 0 or errors > 0):
            status = QueryStatus.PARTIAL
        elif connected > 0:
            status = QueryStatus.LIVE
        elif has_events:
            status = QueryStatus.OFFLINE
        else:
            status = QueryStatus.FAILED
    else:
        status = QueryStatus.CLOSED

    return OverallQueryState(
        status=status,
        total_relays=total,
        connected_count=connected,
        receiving_count=receiving,
        eose_count=eose,
        error_count=errors,
        disconnected_count=disconnected,
        has_received_events=has_events,
        has_active_relays=connected > 0,
        all_relays_failed=all_failed,
        query_started_at=query_started_at,
        first_event_at=first_event_at,
    )
