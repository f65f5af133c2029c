"""
Unit tests for models.relay_state and models.query_state modules.

Tests:
- RelayState defaults and validation
- made_progress / is_failed / is_down properties
- OverallQueryState defaults
"""

import pytest

from reqspell.models import (
    ConnectionState,
    OverallQueryState,
    QueryStatus,
    RelayState,
    SubscriptionState,
)


URL = "wss://relay.example.com/"


class TestRelayState:
    """RelayState construction."""

    def test_defaults(self) -> None:
        state = RelayState(URL)
        assert state.connection_state == ConnectionState.PENDING
        assert state.subscription_state == SubscriptionState.WAITING
        assert state.event_count == 0
        assert state.first_event_at is None

    def test_string_states_coerced(self) -> None:
        state = RelayState(URL, "connected", "eose")  # type: ignore[arg-type]
        assert state.connection_state is ConnectionState.CONNECTED
        assert state.subscription_state is SubscriptionState.EOSE

    def test_invalid_state_rejected(self) -> None:
        with pytest.raises(ValueError):
            RelayState(URL, "bogus")  # type: ignore[arg-type]

    def test_empty_url_rejected(self) -> None:
        with pytest.raises(ValueError):
            RelayState("")

    def test_negative_count_rejected(self) -> None:
        with pytest.raises(ValueError):
            RelayState(URL, event_count=-1)

    def test_non_int_timestamp_rejected(self) -> None:
        with pytest.raises(TypeError):
            RelayState(URL, eose_at=1.5)  # type: ignore[arg-type]


class TestDerivedFlags:
    """made_progress, is_failed and is_down."""

    @pytest.mark.parametrize(
        ("subscription", "expected"),
        [
            (SubscriptionState.WAITING, False),
            (SubscriptionState.RECEIVING, True),
            (SubscriptionState.EOSE, True),
            (SubscriptionState.ERROR, False),
        ],
    )
    def test_made_progress(self, subscription: SubscriptionState, expected: bool) -> None:
        assert RelayState(URL, subscription_state=subscription).made_progress is expected

    def test_error_always_failed(self) -> None:
        state = RelayState(URL, ConnectionState.ERROR, SubscriptionState.EOSE)
        assert state.is_failed is True

    def test_disconnected_without_progress_failed(self) -> None:
        assert RelayState(URL, ConnectionState.DISCONNECTED).is_failed is True

    def test_disconnected_after_eose_not_failed(self) -> None:
        state = RelayState(URL, ConnectionState.DISCONNECTED, SubscriptionState.EOSE)
        assert state.is_failed is False
        assert state.is_down is True

    def test_connecting_not_failed(self) -> None:
        state = RelayState(URL, ConnectionState.CONNECTING)
        assert state.is_failed is False
        assert state.is_down is False


class TestOverallQueryState:
    """OverallQueryState defaults."""

    def test_defaults(self) -> None:
        state = OverallQueryState(QueryStatus.DISCOVERING)
        assert state.total_relays == 0
        assert state.has_active_relays is False
        assert state.all_relays_failed is False
        assert state.first_event_at is None

    def test_frozen(self) -> None:
        state = OverallQueryState(QueryStatus.LIVE)
        with pytest.raises(AttributeError):
            state.status = QueryStatus.CLOSED  # type: ignore[misc]
