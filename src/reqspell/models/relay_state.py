"""
Per-relay lifecycle state of one subscription.

A [RelayState][reqspell.models.relay_state.RelayState] tracks two
independent axes:

* ``connection_state`` -- the transport
  ([ConnectionState][reqspell.models.constants.ConnectionState]);
* ``subscription_state`` -- progress of the REQ
  ([SubscriptionState][reqspell.models.constants.SubscriptionState]).

Both axes keep their last-known value: a relay that reached EOSE and then
dropped its socket reads ``DISCONNECTED`` / ``EOSE``.

Instances are immutable; the
[RelayStateTracker][reqspell.state.tracker.RelayStateTracker] replaces an
entry wholesale on every lifecycle event.
"""

from __future__ import annotations

from dataclasses import dataclass

from ._validation import (
    validate_optional_timestamp,
    validate_str_not_empty,
    validate_timestamp,
)
from .constants import ConnectionState, SubscriptionState


@dataclass(frozen=True, slots=True)
class RelayState:
    """Immutable snapshot of one relay's connection and subscription state.

    Attributes:
        url: Normalized relay URL (the tracker key).
        connection_state: Transport state.
        subscription_state: Subscription progress.
        event_count: Number of events received from this relay.
        first_event_at: Unix milliseconds of the first event, if any.
        last_event_at: Unix milliseconds of the latest event, if any.
        eose_at: Unix milliseconds when EOSE arrived, if it did.
        connected_at: Unix milliseconds of the last transition to connected.
        disconnected_at: Unix milliseconds of the last transition to
            disconnected.

    Raises:
        TypeError: If a timestamp or the count is not an int.
        ValueError: If the URL is empty, the count or a timestamp is
            negative, or a state value is not a valid member.
    """

    url: str
    connection_state: ConnectionState = ConnectionState.PENDING
    subscription_state: SubscriptionState = SubscriptionState.WAITING
    event_count: int = 0
    first_event_at: int | None = None
    last_event_at: int | None = None
    eose_at: int | None = None
    connected_at: int | None = None
    disconnected_at: int | None = None

    def __post_init__(self) -> None:
        validate_str_not_empty(self.url, "url")
        object.__setattr__(self, "connection_state", ConnectionState(self.connection_state))
        object.__setattr__(self, "subscription_state", SubscriptionState(self.subscription_state))
        validate_timestamp(self.event_count, "event_count")
        validate_optional_timestamp(self.first_event_at, "first_event_at")
        validate_optional_timestamp(self.last_event_at, "last_event_at")
        validate_optional_timestamp(self.eose_at, "eose_at")
        validate_optional_timestamp(self.connected_at, "connected_at")
        validate_optional_timestamp(self.disconnected_at, "disconnected_at")

    @property
    def made_progress(self) -> bool:
        """True once the subscription got as far as receiving events or EOSE."""
        return self.subscription_state in (SubscriptionState.RECEIVING, SubscriptionState.EOSE)

    @property
    def is_failed(self) -> bool:
        """True if the relay is gone without ever having made progress.

        An ``ERROR`` connection always counts as failed. A ``DISCONNECTED``
        relay counts as failed only when its subscription never reached
        ``RECEIVING`` or ``EOSE``.
        """
        if self.connection_state == ConnectionState.ERROR:
            return True
        return self.connection_state == ConnectionState.DISCONNECTED and not self.made_progress

    @property
    def is_down(self) -> bool:
        """True if the connection is ``DISCONNECTED`` or ``ERROR``."""
        return self.connection_state in (ConnectionState.DISCONNECTED, ConnectionState.ERROR)
