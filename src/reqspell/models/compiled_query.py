"""
Result of compiling one REQ/COUNT command.

A [CompiledQuery][reqspell.models.compiled_query.CompiledQuery] bundles the
[Filter][reqspell.models.filter.Filter], the relay list, the boolean options
and the six buckets of identifiers that still need asynchronous resolution
(NIP-05 identifiers and domain directories, for ``authors``, ``#p`` and
``#P`` respectively).

It is produced once per command by
[compile_tokens][reqspell.query.compiler.compile_tokens] and never mutated:
resolution produces a new instance via
[evolve()][reqspell.models.compiled_query.CompiledQuery.evolve].
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, NamedTuple

from ._validation import ordered_unique, validate_instance
from .constants import ACCOUNT_ALIASES, CommandType
from .filter import Filter


class BucketTarget(NamedTuple):
    """Where the pubkeys resolved from one pending bucket are merged."""

    bucket: str
    field: str


# Every pending bucket, in resolution order, with its filter destination
PENDING_BUCKETS: tuple[BucketTarget, ...] = (
    BucketTarget("nip05_authors", "authors"),
    BucketTarget("nip05_p_tags", "#p"),
    BucketTarget("nip05_p_tags_uppercase", "#P"),
    BucketTarget("domain_authors", "authors"),
    BucketTarget("domain_p_tags", "#p"),
    BucketTarget("domain_p_tags_uppercase", "#P"),
)

# Filter fields that may hold $me / $contacts literals
ALIAS_FIELDS: tuple[str, ...] = ("authors", "#p", "#P")


@dataclass(frozen=True, slots=True)
class CompiledQuery:
    """A compiled command: filter, relays, options and pending resolutions.

    Attributes:
        filter: The structured NIP-01 filter.
        relays: Normalized relay URLs in first-seen order (explicit relay
            tokens and NIP-19 relay hints).
        command_type: ``REQ`` or ``COUNT``.
        close_on_eose: Close the subscription once EOSE is reached.
        follow: Follow mode (auto-display new events as they stream in).
        since_expr: The ``--since`` expression as typed (``"7d"``, ``"now"``,
            ...), kept so saved queries stay relative.
        until_expr: The ``--until`` expression as typed.
        needs_account: True iff an alias literal (``$me``/``$contacts``) is
            present in ``authors``, ``#p`` or ``#P``.
        nip05_authors: NIP-05 identifiers pending resolution into ``authors``.
        nip05_p_tags: NIP-05 identifiers pending resolution into ``#p``.
        nip05_p_tags_uppercase: NIP-05 identifiers pending resolution into ``#P``.
        domain_authors: Domains whose directory resolves into ``authors``.
        domain_p_tags: Domains whose directory resolves into ``#p``.
        domain_p_tags_uppercase: Domains whose directory resolves into ``#P``.
    """

    filter: Filter = field(default_factory=Filter)
    relays: tuple[str, ...] = ()
    command_type: CommandType = CommandType.REQ
    close_on_eose: bool = False
    follow: bool = False
    since_expr: str | None = None
    until_expr: str | None = None
    needs_account: bool = False
    nip05_authors: tuple[str, ...] = ()
    nip05_p_tags: tuple[str, ...] = ()
    nip05_p_tags_uppercase: tuple[str, ...] = ()
    domain_authors: tuple[str, ...] = ()
    domain_p_tags: tuple[str, ...] = ()
    domain_p_tags_uppercase: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        validate_instance(self.filter, Filter, "filter")
        object.__setattr__(self, "relays", ordered_unique(self.relays))
        object.__setattr__(self, "command_type", CommandType(self.command_type))
        for target in PENDING_BUCKETS:
            object.__setattr__(self, target.bucket, ordered_unique(getattr(self, target.bucket)))

    @property
    def has_pending(self) -> bool:
        """Return True if any identifier still awaits asynchronous resolution."""
        return any(getattr(self, target.bucket) for target in PENDING_BUCKETS)

    def pending(self) -> dict[str, tuple[str, ...]]:
        """Return the non-empty pending buckets keyed by bucket name."""
        return {
            target.bucket: getattr(self, target.bucket)
            for target in PENDING_BUCKETS
            if getattr(self, target.bucket)
        }

    def evolve(self, **changes: Any) -> CompiledQuery:
        """Return a copy with *changes* applied and ``needs_account`` recomputed."""
        updated = replace(self, **changes)
        return replace(updated, needs_account=filter_needs_account(updated.filter))

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable view, omitting empty buckets."""
        result: dict[str, Any] = {
            "command": self.command_type.value,
            "filter": self.filter.to_dict(),
            "relays": list(self.relays),
            "close_on_eose": self.close_on_eose,
            "follow": self.follow,
            "needs_account": self.needs_account,
        }
        result.update({name: list(values) for name, values in self.pending().items()})
        return result


def filter_needs_account(filter_: Filter) -> bool:
    """Return True if *filter_* still contains an unresolved account alias."""
    return any(
        value in ACCOUNT_ALIASES for name in ALIAS_FIELDS for value in filter_.get_values(name)
    )
