"""Pure frozen dataclasses with zero I/O for filters, compiled queries and relay state.

The models layer is the foundation of the diamond DAG. Apart from ``rfc3986``
(relay URL normalization) it depends only on the Python standard library.
Every model uses ``@dataclass(frozen=True, slots=True)`` and validates in
``__post_init__``, so invalid instances never escape the constructor.

Attributes:
    Filter: Immutable NIP-01 filter with ordered, deduplicated arrays and a
        typed tag-filter mapping.
    CompiledQuery: Output of the compiler: filter, relays, options and the
        six buckets of identifiers pending asynchronous resolution.
    RelayState: Per-relay connection and subscription state.
    OverallQueryState: Aggregate status derived from every
        [RelayState][reqspell.models.relay_state.RelayState].
    normalize_relay_url: Canonical relay URL shared by compiler and tracker.

See Also:
    [reqspell.models.filter][]: Filter model and wire format.
    [reqspell.models.compiled_query][]: Compiled query and pending buckets.
    [reqspell.models.relay][]: Relay URL normalization.
    [reqspell.models.relay_state][]: Per-relay lifecycle state.
    [reqspell.models.query_state][]: Derived overall state.
    [reqspell.models.constants][]: Shared enumerations and constants.
"""

from .compiled_query import ALIAS_FIELDS, PENDING_BUCKETS, BucketTarget, CompiledQuery
from .constants import (
    ACCOUNT_ALIASES,
    ALIAS_CONTACTS,
    ALIAS_ME,
    EVENT_KIND_MAX,
    CommandType,
    ConnectionState,
    EventKind,
    QueryStatus,
    SpellParameterType,
    SubscriptionState,
)
from .filter import Filter
from .query_state import OverallQueryState
from .relay import normalize_relay_url, try_normalize_relay_url
from .relay_state import RelayState


__all__ = [
    "ACCOUNT_ALIASES",
    "ALIAS_CONTACTS",
    "ALIAS_FIELDS",
    "ALIAS_ME",
    "EVENT_KIND_MAX",
    "PENDING_BUCKETS",
    "BucketTarget",
    "CommandType",
    "CompiledQuery",
    "ConnectionState",
    "EventKind",
    "Filter",
    "OverallQueryState",
    "QueryStatus",
    "RelayState",
    "SpellParameterType",
    "SubscriptionState",
    "normalize_relay_url",
    "try_normalize_relay_url",
]
