"""
Unit tests for state.tracker module.

Tests:
- Tracked set: construction, reset(), add_relay(), URL normalization
- Lifecycle updates: connection changes, events, EOSE, errors
- mark_connected_eose() bulk transition
- Ignored updates for untracked and invalid URLs
- snapshot() isolation and derive()
- Concurrent updates from several threads
"""

import logging
import threading

import pytest

from reqspell.core.logger import Logger
from reqspell.models import ConnectionState, QueryStatus, SubscriptionState
from reqspell.state.tracker import RelayStateTracker


A = "wss://a.example.com/"
B = "wss://b.example.com/"


@pytest.fixture
def tracker() -> RelayStateTracker:
    return RelayStateTracker(["a.example.com", "wss://B.example.com"], started_at=1_000)


# ============================================================================
# Tracked Set
# ============================================================================


class TestTrackedSet:
    """Construction, reset() and add_relay()."""

    def test_initial_states(self, tracker: RelayStateTracker) -> None:
        assert len(tracker) == 2
        state = tracker.get(A)
        assert state is not None
        assert state.connection_state == ConnectionState.PENDING
        assert state.subscription_state == SubscriptionState.WAITING
        assert tracker.query_started_at == 1_000

    def test_keys_normalized(self, tracker: RelayStateTracker) -> None:
        assert set(tracker.snapshot()) == {A, B}
        assert "a.example.com" in tracker
        assert "wss://A.EXAMPLE.COM" in tracker
        assert "c.example.com" not in tracker
        assert 42 not in tracker

    def test_duplicates_collapsed(self) -> None:
        tracker = RelayStateTracker(["a.example.com", "wss://a.example.com/"])
        assert len(tracker) == 1

    def test_invalid_url_skipped(self) -> None:
        tracker = RelayStateTracker(["ftp://bad.example.com", "a.example.com"])
        assert len(tracker) == 1

    def test_reset_replaces_set(self, tracker: RelayStateTracker) -> None:
        tracker.set_connection_state(A, ConnectionState.CONNECTED, at=5)
        tracker.reset(["c.example.com"], started_at=2_000)
        assert set(tracker.snapshot()) == {"wss://c.example.com/"}
        assert tracker.query_started_at == 2_000

    def test_add_relay(self, tracker: RelayStateTracker) -> None:
        assert tracker.add_relay("c.example.com") is True
        assert tracker.add_relay("wss://c.example.com/") is False
        assert tracker.add_relay("ftp://x.example.com") is False
        assert len(tracker) == 3

    def test_started_at_defaults_to_clock(self) -> None:
        assert RelayStateTracker().query_started_at > 0


# ============================================================================
# Lifecycle
# ============================================================================


class TestLifecycle:
    """Per-relay lifecycle updates."""

    def test_connected_stamps_time(self, tracker: RelayStateTracker) -> None:
        state = tracker.set_connection_state(A, ConnectionState.CONNECTED, at=10)
        assert state is not None
        assert state.connection_state == ConnectionState.CONNECTED
        assert state.connected_at == 10

    def test_disconnected_stamps_time(self, tracker: RelayStateTracker) -> None:
        state = tracker.set_connection_state(A, "disconnected", at=20)  # type: ignore[arg-type]
        assert state is not None
        assert state.connection_state == ConnectionState.DISCONNECTED
        assert state.disconnected_at == 20

    def test_record_event(self, tracker: RelayStateTracker) -> None:
        tracker.record_event(A, at=100)
        state = tracker.record_event(A, at=200)
        assert state is not None
        assert state.subscription_state == SubscriptionState.RECEIVING
        assert state.event_count == 2
        assert state.first_event_at == 100
        assert state.last_event_at == 200

    def test_event_after_eose_keeps_eose(self, tracker: RelayStateTracker) -> None:
        tracker.mark_eose(A, at=50)
        state = tracker.record_event(A, at=60)
        assert state is not None
        assert state.subscription_state == SubscriptionState.EOSE
        assert state.event_count == 1
        assert state.eose_at == 50

    def test_mark_error(self, tracker: RelayStateTracker) -> None:
        state = tracker.mark_error(A)
        assert state is not None
        assert state.connection_state == ConnectionState.ERROR
        assert state.subscription_state == SubscriptionState.ERROR

    def test_mark_error_after_eose(self, tracker: RelayStateTracker) -> None:
        tracker.mark_eose(A)
        state = tracker.mark_error(A)
        assert state is not None
        assert state.subscription_state == SubscriptionState.EOSE

    def test_axes_independent(self, tracker: RelayStateTracker) -> None:
        tracker.mark_eose(A)
        state = tracker.set_connection_state(A, ConnectionState.DISCONNECTED)
        assert state is not None
        assert state.subscription_state == SubscriptionState.EOSE

    def test_mark_connected_eose(self, tracker: RelayStateTracker) -> None:
        tracker.add_relay("c.example.com")
        tracker.set_connection_state(A, ConnectionState.CONNECTED)
        tracker.set_connection_state(B, ConnectionState.CONNECTED)
        tracker.mark_eose(B, at=1)

        assert tracker.mark_connected_eose(at=9) == 1
        snapshot = tracker.snapshot()
        assert snapshot[A].subscription_state == SubscriptionState.EOSE
        assert snapshot[A].eose_at == 9
        assert snapshot[B].eose_at == 1
        assert snapshot["wss://c.example.com/"].subscription_state == SubscriptionState.WAITING


# ============================================================================
# Ignored Updates
# ============================================================================


class TestIgnoredUpdates:
    """Updates for unknown relays."""

    def test_untracked_ignored(
        self, caplog: pytest.LogCaptureFixture, logger: Logger
    ) -> None:
        tracker = RelayStateTracker([A], logger=logger)
        with caplog.at_level(logging.DEBUG, logger=logger.name):
            assert tracker.record_event("wss://other.example.com") is None
        assert len(tracker) == 1
        assert any(r.getMessage() == "relay_update_ignored" for r in caplog.records)

    def test_invalid_ignored(self, tracker: RelayStateTracker) -> None:
        assert tracker.mark_eose("ftp://bad") is None
        assert tracker.get("ftp://bad") is None


# ============================================================================
# Reads
# ============================================================================


class TestReads:
    """snapshot() and derive()."""

    def test_snapshot_isolated(self, tracker: RelayStateTracker) -> None:
        snapshot = tracker.snapshot()
        tracker.record_event(A)
        assert snapshot[A].event_count == 0
        with pytest.raises(TypeError):
            snapshot[A] = snapshot[B]  # type: ignore[index]

    def test_derive(self, tracker: RelayStateTracker) -> None:
        assert tracker.derive(False, True).status == QueryStatus.CONNECTING
        tracker.set_connection_state(A, ConnectionState.CONNECTED)
        tracker.record_event(A)
        assert tracker.derive(False, True).status == QueryStatus.LOADING
        tracker.mark_connected_eose()
        assert tracker.derive(True, True).status == QueryStatus.LIVE
        tracker.set_connection_state(A, ConnectionState.DISCONNECTED)
        assert tracker.derive(True, True).status == QueryStatus.OFFLINE
        assert tracker.derive(True, True).query_started_at == 1_000

    def test_empty_tracker_discovering(self) -> None:
        assert RelayStateTracker().derive(False, True).status == QueryStatus.DISCOVERING


# ============================================================================
# Concurrency
# ============================================================================


class TestConcurrency:
    """Parallel updates from several threads."""

    def test_concurrent_events_counted(self) -> None:
        urls = [f"wss://r{i}.example.com/" for i in range(4)]
        tracker = RelayStateTracker(urls)

        def worker(url: str) -> None:
            for _ in range(500):
                tracker.record_event(url)

        threads = [threading.Thread(target=worker, args=(url,)) for url in urls * 2]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert all(state.event_count == 1_000 for state in tracker.snapshot().values())
