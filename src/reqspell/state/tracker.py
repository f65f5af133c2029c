"""
Per-relay state tracking for one subscription.

The [RelayStateTracker][reqspell.state.tracker.RelayStateTracker] is the
only shared mutable structure of a running query. The connection layer
feeds it one lifecycle event at a time (connection changes, events, EOSE,
errors) and the UI reads consistent snapshots to hand to
[derive_overall_state()][reqspell.state.aggregator.derive_overall_state].

Every mutation replaces exactly one entry with a new frozen
[RelayState][reqspell.models.relay_state.RelayState] while holding a lock,
so concurrent updates for different relays never race and a reader never
observes a half-applied update.

Relay URLs are keyed by
[normalize_relay_url()][reqspell.models.relay.normalize_relay_url], the same
normalizer the compiler uses. Updates for untracked or invalid URLs are
ignored.

Examples:
    ```python
    tracker = RelayStateTracker(["relay.example.com", "wss://nos.lol"])
    tracker.set_connection_state("wss://relay.example.com", ConnectionState.CONNECTED)
    tracker.record_event("wss://relay.example.com/")
    tracker.derive(global_eose_reached=False, is_streaming=True).status
    # QueryStatus.LOADING
    ```
"""

from __future__ import annotations

import threading
import time
from dataclasses import replace
from types import MappingProxyType
from typing import TYPE_CHECKING

from reqspell.models.constants import ConnectionState, SubscriptionState
from reqspell.models.relay import try_normalize_relay_url
from reqspell.models.relay_state import RelayState

from .aggregator import derive_overall_state


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from reqspell.core.logger import Logger
    from reqspell.models.query_state import OverallQueryState


def _now_ms() -> int:
    return int(time.time() * 1000)


class RelayStateTracker:
    """Thread-safe map from normalized relay URL to [RelayState][reqspell.models.relay_state.RelayState].

    Timestamps are unix milliseconds. Every mutating method accepts an
    optional ``at`` to record a caller-provided time instead of the clock.

    Attributes:
        query_started_at: Millisecond timestamp of the last
            [reset()][reqspell.state.tracker.RelayStateTracker.reset] (or
            construction).
    """

    def __init__(
        self,
        relays: Iterable[str] = (),
        *,
        logger: Logger | None = None,
        started_at: int | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._states: dict[str, RelayState] = {}
        self._logger = logger
        self.query_started_at = 0
        self.reset(relays, started_at=started_at)

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, url: object) -> bool:
        if not isinstance(url, str):
            return False
        key = try_normalize_relay_url(url)
        return key is not None and key in self._states

    # -------------------------------------------------------------------------
    # Tracked set
    # -------------------------------------------------------------------------

    def reset(self, relays: Iterable[str], *, started_at: int | None = None) -> None:
        """Replace the tracked set; every relay starts ``pending``/``waiting``."""
        states: dict[str, RelayState] = {}
        for raw in relays:
            key = try_normalize_relay_url(raw)
            if key is None:
                self._debug("relay_ignored", url=raw, reason="invalid_url")
                continue
            states.setdefault(key, RelayState(url=key))
        with self._lock:
            self._states = states
            self.query_started_at = _now_ms() if started_at is None else started_at

    def add_relay(self, url: str) -> bool:
        """Start tracking *url*. Returns False if invalid or already tracked."""
        key = try_normalize_relay_url(url)
        if key is None:
            self._debug("relay_ignored", url=url, reason="invalid_url")
            return False
        with self._lock:
            if key in self._states:
                return False
            self._states[key] = RelayState(url=key)
        return True

    # -------------------------------------------------------------------------
    # Lifecycle events
    # -------------------------------------------------------------------------

    def set_connection_state(
        self, url: str, state: ConnectionState, at: int | None = None
    ) -> RelayState | None:
        """Update the connection axis of one relay."""
        state = ConnectionState(state)
        stamp = _now_ms() if at is None else at

        def apply(current: RelayState) -> RelayState:
            if state == ConnectionState.CONNECTED:
                return replace(current, connection_state=state, connected_at=stamp)
            if state == ConnectionState.DISCONNECTED:
                return replace(current, connection_state=state, disconnected_at=stamp)
            return replace(current, connection_state=state)

        return self._update(url, apply)

    def record_event(self, url: str, at: int | None = None) -> RelayState | None:
        """Count one received event; the subscription moves to ``receiving``."""
        stamp = _now_ms() if at is None else at

        def apply(current: RelayState) -> RelayState:
            subscription = current.subscription_state
            if subscription != SubscriptionState.EOSE:
                subscription = SubscriptionState.RECEIVING
            return replace(
                current,
                subscription_state=subscription,
                event_count=current.event_count + 1,
                first_event_at=stamp if current.first_event_at is None else current.first_event_at,
                last_event_at=stamp,
            )

        return self._update(url, apply)

    def mark_eose(self, url: str, at: int | None = None) -> RelayState | None:
        """Record End Of Stored Events for one relay."""
        stamp = _now_ms() if at is None else at
        return self._update(
            url,
            lambda current: replace(
                current, subscription_state=SubscriptionState.EOSE, eose_at=stamp
            ),
        )

    def mark_connected_eose(self, at: int | None = None) -> int:
        """Move every connected relay not yet at EOSE to ``eose``.

        Used when the subscription layer reports EOSE for the whole group
        without per-relay attribution.

        Returns:
            The number of relays updated.
        """
        stamp = _now_ms() if at is None else at
        with self._lock:
            updated = {
                key: replace(state, subscription_state=SubscriptionState.EOSE, eose_at=stamp)
                for key, state in self._states.items()
                if state.connection_state == ConnectionState.CONNECTED
                and state.subscription_state != SubscriptionState.EOSE
            }
            self._states.update(updated)
        return len(updated)

    def mark_error(self, url: str) -> RelayState | None:
        """Record a relay failure.

        The subscription axis becomes ``error`` too, unless the relay already
        delivered EOSE.
        """

        def apply(current: RelayState) -> RelayState:
            subscription = current.subscription_state
            if subscription != SubscriptionState.EOSE:
                subscription = SubscriptionState.ERROR
            return replace(
                current,
                connection_state=ConnectionState.ERROR,
                subscription_state=subscription,
            )

        return self._update(url, apply)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get(self, url: str) -> RelayState | None:
        """Return the state of one relay, or ``None`` if untracked."""
        key = try_normalize_relay_url(url)
        if key is None:
            return None
        with self._lock:
            return self._states.get(key)

    def snapshot(self) -> Mapping[str, RelayState]:
        """Return a read-only copy of the current map."""
        with self._lock:
            return MappingProxyType(dict(self._states))

    def derive(self, global_eose_reached: bool, is_streaming: bool) -> OverallQueryState:
        """Derive the overall state from a fresh snapshot."""
        return derive_overall_state(
            self.snapshot(), global_eose_reached, is_streaming, self.query_started_at
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _update(self, url: str, apply: Callable[[RelayState], RelayState]) -> RelayState | None:
        key = try_normalize_relay_url(url)
        if key is None:
            self._debug("relay_update_ignored", url=url, reason="invalid_url")
            return None
        with self._lock:
            current = self._states.get(key)
            if current is None:
                updated = None
            else:
                updated = apply(current)
                self._states[key] = updated
        if updated is None:
            self._debug("relay_update_ignored", url=key, reason="untracked")
        return updated

    def _debug(self, msg: str, **kwargs: object) -> None:
        if self._logger is not None:
            self._logger.debug(msg, **kwargs)
