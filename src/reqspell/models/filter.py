"""
NIP-01 subscription filter.

A [Filter][reqspell.models.filter.Filter] is the structured form of the
object sent in ``["REQ", <sub_id>, <filter>]`` / ``["COUNT", ...]`` messages.
Instead of an open-ended dictionary with ``"#<letter>"`` keys, tag filters
live in a small mapping from a single tag letter to an ordered tuple of
values, alongside typed fields for ``ids``/``authors``/``kinds`` and the
scalar bounds. [to_dict()][reqspell.models.filter.Filter.to_dict] produces
the wire shape.

Invariants (enforced in ``__post_init__``):

* every array-valued field is an ordered tuple without duplicates
  (first occurrence wins);
* a field is present on the wire only when its tuple is non-empty or its
  scalar is set.

Filters are immutable. [merged()][reqspell.models.filter.Filter.merged] and
[with_values()][reqspell.models.filter.Filter.with_values] return new
instances, which is how alias resolution feeds resolved pubkeys back in.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from ._validation import (
    ordered_unique,
    validate_optional_timestamp,
    validate_str_no_null,
    validate_tag_letter,
)
from .constants import EVENT_KIND_MAX


if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


# Field names accepted by merged()/with_values() in addition to "#<letter>"
_ARRAY_FIELDS = ("ids", "authors", "kinds")


@dataclass(frozen=True, slots=True)
class Filter:
    """Immutable NIP-01 filter.

    Attributes:
        ids: Event ids (64-char lowercase hex, or spell placeholders).
        authors: Author pubkeys (hex, or ``$me``/``$contacts`` aliases).
        kinds: Event kinds.
        tags: Tag filters keyed by single ASCII letter (``"e"``, ``"p"``,
            ``"P"``, ``"t"``, ...). Each value tuple is non-empty.
        since: Lower ``created_at`` bound (unix seconds).
        until: Upper ``created_at`` bound (unix seconds).
        limit: Maximum number of stored events to return.
        search: NIP-50 full-text search query.

    Raises:
        TypeError: If a field has the wrong type.
        ValueError: If a kind is out of range, a tag key is not a single
            ASCII letter, or a scalar is negative.

    Examples:
        ```python
        f = Filter(kinds=(1, 3, 1), tags={"t": ("nostr",)}, limit=20)
        f.kinds        # (1, 3)
        f.to_dict()    # {'kinds': [1, 3], '#t': ['nostr'], 'limit': 20}
        ```
    """

    ids: tuple[str, ...] = ()
    authors: tuple[str, ...] = ()
    kinds: tuple[int, ...] = ()
    tags: Mapping[str, tuple[str, ...]] = field(default_factory=dict, hash=False)
    since: int | None = None
    until: int | None = None
    limit: int | None = None
    search: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "ids", self._clean_strings(self.ids, "ids"))
        object.__setattr__(self, "authors", self._clean_strings(self.authors, "authors"))

        kinds = ordered_unique(self.kinds)
        for kind in kinds:
            if isinstance(kind, bool) or not isinstance(kind, int):
                raise TypeError(f"kinds must contain ints, got {type(kind).__name__}")
            if not 0 <= kind <= EVENT_KIND_MAX:
                raise ValueError(f"kind {kind} out of range 0..{EVENT_KIND_MAX}")
        object.__setattr__(self, "kinds", kinds)

        tags: dict[str, tuple[str, ...]] = {}
        for letter, values in self.tags.items():
            validate_tag_letter(letter, "tag letter")
            cleaned = self._clean_strings(values, f"#{letter}")
            if cleaned:
                tags[letter] = cleaned
        object.__setattr__(self, "tags", MappingProxyType(tags))

        validate_optional_timestamp(self.since, "since")
        validate_optional_timestamp(self.until, "until")
        validate_optional_timestamp(self.limit, "limit")
        if self.search is not None:
            validate_str_no_null(self.search, "search")

    @staticmethod
    def _clean_strings(values: Iterable[str], name: str) -> tuple[str, ...]:
        if isinstance(values, str):
            raise TypeError(f"{name} must be a sequence of str, not a str")
        cleaned = ordered_unique(values)
        for value in cleaned:
            validate_str_no_null(value, name)
        return cleaned

    # -- accessors --------------------------------------------------------

    def tag(self, letter: str) -> tuple[str, ...]:
        """Return the values of the ``#<letter>`` tag filter (empty if absent)."""
        return self.tags.get(letter, ())

    def get_values(self, name: str) -> tuple[Any, ...]:
        """Return an array field by wire name (``"authors"``, ``"#p"``, ...)."""
        if name.startswith("#"):
            return self.tag(name[1:])
        if name not in _ARRAY_FIELDS:
            raise KeyError(name)
        return getattr(self, name)  # type: ignore[no-any-return]

    def has_constraints(self) -> bool:
        """Return True if the filter constrains the query in any way.

        A filter with no kinds, authors, ids, tag filters, limit, time
        bounds, or search would match every event on a relay.
        """
        return bool(
            self.kinds
            or self.authors
            or self.ids
            or self.tags
            or self.limit is not None
            or self.since is not None
            or self.until is not None
            or self.search is not None
        )

    # -- derivation -------------------------------------------------------

    def with_values(self, name: str, values: Iterable[Any]) -> Filter:
        """Return a copy with the array field *name* replaced by *values*.

        An empty *values* removes the field.
        """
        if name.startswith("#"):
            tags = dict(self.tags)
            tags[name[1:]] = tuple(values)
            return replace(self, tags=tags)
        if name not in _ARRAY_FIELDS:
            raise KeyError(name)
        return replace(self, **{name: tuple(values)})

    def merged(self, name: str, values: Iterable[Any]) -> Filter:
        """Return a copy with *values* appended to field *name* (deduplicated)."""
        return self.with_values(name, (*self.get_values(name), *values))

    # -- wire format ------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Return the NIP-01 wire shape, omitting empty and unset fields."""
        wire: dict[str, Any] = {}
        if self.ids:
            wire["ids"] = list(self.ids)
        if self.authors:
            wire["authors"] = list(self.authors)
        if self.kinds:
            wire["kinds"] = list(self.kinds)
        for letter, values in self.tags.items():
            wire[f"#{letter}"] = list(values)
        if self.since is not None:
            wire["since"] = self.since
        if self.until is not None:
            wire["until"] = self.until
        if self.limit is not None:
            wire["limit"] = self.limit
        if self.search is not None:
            wire["search"] = self.search
        return wire

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Filter:
        """Build a filter from its NIP-01 wire shape.

        Unknown keys are ignored. Validation errors propagate from the
        constructor.
        """
        tags = {
            key[1:]: tuple(value)
            for key, value in data.items()
            if key.startswith("#") and len(key) == 2 and isinstance(value, list)
        }
        return cls(
            ids=tuple(data.get("ids", ())),
            authors=tuple(data.get("authors", ())),
            kinds=tuple(data.get("kinds", ())),
            tags=tags,
            since=data.get("since"),
            until=data.get("until"),
            limit=data.get("limit"),
            search=data.get("search"),
        )
