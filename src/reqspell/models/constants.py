"""Shared constants for the models layer.

Defines the enumerations used across the compiler, the relay state
tracker and the spell codec. Placing them here avoids circular
dependencies between the ``models``, ``query`` and ``state`` layers.

See Also:
    [reqspell.models.relay_state][]: Uses
        [ConnectionState][reqspell.models.constants.ConnectionState] and
        [SubscriptionState][reqspell.models.constants.SubscriptionState]
        for the two independent per-relay lifecycle axes.
    [reqspell.state.aggregator][]: Produces a
        [QueryStatus][reqspell.models.constants.QueryStatus].
    [reqspell.spells.codec][]: Encodes
        [CommandType][reqspell.models.constants.CommandType] in the ``cmd`` tag.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class ConnectionState(StrEnum):
    """Transport-level state of one relay connection.

    Attributes:
        PENDING: Relay selected but no connection attempt started yet.
        CONNECTING: WebSocket handshake in progress.
        CONNECTED: Socket open and usable.
        DISCONNECTED: Socket closed (cleanly or after a drop).
        ERROR: Connection attempt failed or the relay errored out.

    Note:
        This axis is independent of
        [SubscriptionState][reqspell.models.constants.SubscriptionState]:
        a relay can be ``DISCONNECTED`` while its subscription state is
        still ``EOSE``.
    """

    PENDING = "pending"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


class SubscriptionState(StrEnum):
    """Progress of the REQ subscription on one relay.

    Attributes:
        WAITING: Subscription sent (or about to be), no events yet.
        RECEIVING: At least one stored event has arrived.
        EOSE: The relay signalled End Of Stored Events.
        ERROR: The subscription was closed with an error.
    """

    WAITING = "waiting"
    RECEIVING = "receiving"
    EOSE = "eose"
    ERROR = "error"


class QueryStatus(StrEnum):
    """Overall status of a multi-relay query.

    Exactly one of these is produced by
    [derive_overall_state][reqspell.state.aggregator.derive_overall_state]
    for every possible snapshot.

    Attributes:
        DISCOVERING: No relays selected yet (outbox discovery running).
        CONNECTING: Relays selected, none connected, no events yet.
        LOADING: Connected and/or receiving, global EOSE not yet reached.
        LIVE: Streaming after EOSE with every failure-free relay connected.
        PARTIAL: Streaming after EOSE with some relays up and some down.
        OFFLINE: Streaming after EOSE, every relay gone, events were received.
        CLOSED: One-shot query complete.
        FAILED: Every relay failed without delivering anything.
    """

    DISCOVERING = "discovering"
    CONNECTING = "connecting"
    LOADING = "loading"
    LIVE = "live"
    PARTIAL = "partial"
    OFFLINE = "offline"
    CLOSED = "closed"
    FAILED = "failed"


class CommandType(StrEnum):
    """Command verb of a query: a regular subscription or a NIP-45 count."""

    REQ = "REQ"
    COUNT = "COUNT"


class SpellParameterType(StrEnum):
    """Placeholder kinds a parameterized spell can be applied to."""

    PUBKEY = "$pubkey"
    EVENT = "$event"
    RELAY = "$relay"


class EventKind(IntEnum):
    """Well-known Nostr event kinds used by this package.

    Attributes:
        SPELL: Kind 777 -- a saved REQ/COUNT command encoded as tags.
    """

    SPELL = 777


EVENT_KIND_MAX = 65_535

ALIAS_ME = "$me"
ALIAS_CONTACTS = "$contacts"
ACCOUNT_ALIASES: frozenset[str] = frozenset({ALIAS_ME, ALIAS_CONTACTS})
