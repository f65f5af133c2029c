"""
Spell encoding and decoding.

A spell is a kind-777 Nostr event that stores a REQ/COUNT command as
queryable tags, so that saved queries can be shared, forked and run again
later. Relative time expressions (``--since 7d``) are stored as typed and
re-evaluated when the spell is decoded.

Tag layout, in order:

```text
["cmd", "REQ" | "COUNT"]                 required
["client", "reqspell"]
["name", <name>]                         optional
["alt", "reqspell REQ spell: <desc>"]    NIP-31 fallback text
["l", <parameter type>, *defaults]       parameterized spells only
["e", <forked-from event id>]            provenance
["k", <kind>]                            one per kind
["authors", *pubkeys]
["ids", *event ids]
["tag", <letter>, *values]               one per tag filter
["limit", <n>]
["since", <expression>]
["until", <expression>]
["search", <query>]
["relays", *relay urls]
["close-on-eose", ""]
["t", <topic>]                           one per topic
```

Pending NIP-05 identifiers are stored verbatim in ``authors`` / ``#p`` /
``#P`` (domain directories with their leading ``@``) and go back into the
pending buckets on decode, so they are resolved again at run time.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from reqspell.core.exceptions import SpellDecodeError, SpellError
from reqspell.models.compiled_query import ALIAS_FIELDS, CompiledQuery, filter_needs_account
from reqspell.models.constants import (
    ACCOUNT_ALIASES,
    EVENT_KIND_MAX,
    CommandType,
    EventKind,
    SpellParameterType,
)
from reqspell.models.filter import Filter
from reqspell.models.relay import try_normalize_relay_url
from reqspell.nips.nip05 import is_domain, is_nip05
from reqspell.query.compiler import compile_tokens, require_constraints
from reqspell.query.identifiers import IdentifierKind, classify_event, classify_pubkey
from reqspell.query.timestamps import parse_timestamp
from reqspell.query.tokenizer import split_command

from .parameters import SpellParameter


if TYPE_CHECKING:
    from reqspell.core.logger import Logger
    from reqspell.utils.cache import ComputationCache


CLIENT_TAG = ("client", "reqspell")
CACHE_TAG = "spell"

_ALT_DESCRIPTION_MAX = 100
_UINT_RE = re.compile(r"^[0-9]+$")

# (nip05 bucket, domain bucket) per pubkey field
_FIELD_BUCKETS: dict[str, tuple[str, str]] = {
    "authors": ("nip05_authors", "domain_authors"),
    "#p": ("nip05_p_tags", "domain_p_tags"),
    "#P": ("nip05_p_tags_uppercase", "domain_p_tags_uppercase"),
}

# Flags used to rebuild each well-known tag filter
_TAG_FLAGS: dict[str, str] = {"e": "-e", "a": "-e", "p": "-p", "P": "-P", "t": "-t", "d": "-d"}


@dataclass(frozen=True, slots=True)
class EncodedSpell:
    """Tags and content of a spell event, plus the query they encode."""

    tags: tuple[tuple[str, ...], ...]
    content: str
    query: CompiledQuery

    def to_dict(self) -> dict[str, Any]:
        """Return the unsigned event template (``kind``, ``tags``, ``content``)."""
        return {
            "kind": int(EventKind.SPELL),
            "tags": [list(tag) for tag in self.tags],
            "content": self.content,
        }


@dataclass(frozen=True, slots=True)
class ParsedSpell:
    """A decoded spell.

    Attributes:
        command: Canonical command rebuilt from the tags.
        query: The compiled query, with pending NIP-05 / domain identifiers
            back in their buckets.
        name: Spell name, if any.
        description: Event content, if non-empty.
        topics: ``t`` tag values.
        forked_from: Event id of the spell this one was forked from.
        parameter: Declared placeholder, if the spell is parameterized.
    """

    command: str
    query: CompiledQuery
    name: str | None = None
    description: str | None = None
    topics: tuple[str, ...] = ()
    forked_from: str | None = None
    parameter: SpellParameter | None = None
    event_id: str | None = field(default=None, compare=False)

    @property
    def filter(self) -> Filter:
        """The decoded filter."""
        return self.query.filter

    @property
    def relays(self) -> tuple[str, ...]:
        """Relays stored with the spell."""
        return self.query.relays


def detect_command_type(command: str) -> CommandType:
    """Return ``COUNT`` if *command* starts with the word ``count``, else ``REQ``."""
    return split_command(command)[0]


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def _pending_values(compiled: CompiledQuery, name: str) -> list[str]:
    nip05_bucket, domain_bucket = _FIELD_BUCKETS[name]
    return [
        *getattr(compiled, nip05_bucket),
        *(f"@{domain}" for domain in getattr(compiled, domain_bucket)),
    ]


def encode_spell(
    command: str,
    *,
    name: str | None = None,
    description: str | None = None,
    topics: Sequence[str] = (),
    forked_from: str | None = None,
    parameter: SpellParameter | None = None,
    now: int | None = None,
    logger: Logger | None = None,
) -> EncodedSpell:
    """Encode a REQ/COUNT command as spell tags.

    Args:
        command: The full command, with or without a ``req``/``count`` prefix.
        name: Optional spell name.
        description: Optional description, stored as event content.
        topics: Topics stored as ``t`` tags.
        forked_from: Event id of the spell this one derives from.
        parameter: Placeholder declaration for parameterized spells. With a
            ``$pubkey`` parameter, ``$me``/``$contacts`` become ``$pubkey``.
        now: Reference time used to validate relative time expressions.
        logger: Passed to the compiler for dropped-token diagnostics.

    Raises:
        SpellError: If the command is empty.
        EmptyFilterError: If the command compiles to a filter without any
            constraint.
    """
    if not command or not command.strip():
        raise SpellError("Spell command is required")

    command_type, tokens = split_command(command)
    if not tokens:
        raise SpellError("Spell command must contain filters or parameters")

    compiled = require_constraints(
        compile_tokens(tokens, command_type=command_type, now=now, logger=logger)
    )
    filter_ = compiled.filter

    if parameter is not None and parameter.type == SpellParameterType.PUBKEY:
        placeholder = parameter.type.value
        for field_name in ALIAS_FIELDS:
            values = filter_.get_values(field_name)
            filter_ = filter_.with_values(
                field_name, [placeholder if v in ACCOUNT_ALIASES else v for v in values]
            )
        compiled = compiled.evolve(filter=filter_)

    tags: list[tuple[str, ...]] = [("cmd", command_type.value), CLIENT_TAG]

    if name and name.strip():
        tags.append(("name", name.strip()))

    alt = f"reqspell {command_type.value} spell"
    if description:
        alt += f": {description[:_ALT_DESCRIPTION_MAX]}"
    tags.append(("alt", alt))

    if parameter is not None:
        tags.append(tuple(parameter.to_tag()))
    if forked_from:
        tags.append(("e", forked_from))

    tags.extend(("k", str(kind)) for kind in filter_.kinds)

    authors = [*filter_.authors, *_pending_values(compiled, "authors")]
    if authors:
        tags.append(("authors", *authors))
    if filter_.ids:
        tags.append(("ids", *filter_.ids))

    tag_values: dict[str, list[str]] = {letter: list(vals) for letter, vals in filter_.tags.items()}
    for letter, field_name in (("p", "#p"), ("P", "#P")):
        pending = _pending_values(compiled, field_name)
        if pending:
            tag_values.setdefault(letter, []).extend(pending)
    tags.extend(("tag", letter, *values) for letter, values in tag_values.items())

    if filter_.limit is not None:
        tags.append(("limit", str(filter_.limit)))
    if filter_.since is not None:
        tags.append(("since", compiled.since_expr or str(filter_.since)))
    if filter_.until is not None:
        tags.append(("until", compiled.until_expr or str(filter_.until)))
    if filter_.search is not None:
        tags.append(("search", filter_.search))
    if compiled.relays:
        tags.append(("relays", *compiled.relays))
    if compiled.close_on_eose:
        tags.append(("close-on-eose", ""))
    tags.extend(("t", topic) for topic in topics if topic)

    return EncodedSpell(tags=tuple(tags), content=description or "", query=compiled)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _validate_tags(tags: Any) -> list[list[str]]:
    if isinstance(tags, (str, bytes)) or not isinstance(tags, Sequence):
        raise SpellDecodeError("Spell tags must be a list of tags")
    validated: list[list[str]] = []
    for tag in tags:
        if (
            isinstance(tag, (str, bytes))
            or not isinstance(tag, Sequence)
            or not tag
            or not all(isinstance(item, str) for item in tag)
        ):
            raise SpellDecodeError(f"Malformed spell tag: {tag!r}")
        validated.append(list(tag))
    return validated


def _split_pending(
    values: Sequence[str], name: str, buckets: dict[str, list[str]]
) -> list[str]:
    """Move NIP-05 identifiers and ``@domain`` values of a pubkey field into buckets."""
    nip05_bucket, domain_bucket = _FIELD_BUCKETS[name]
    kept: list[str] = []
    for value in values:
        if value.startswith("@") and is_domain(value[1:]):
            buckets.setdefault(domain_bucket, []).append(value[1:].lower())
        elif is_nip05(value):
            buckets.setdefault(nip05_bucket, []).append(value.lower())
        else:
            kept.append(value)
    return kept


def decode_spell(tags: Any, content: str = "", *, now: int | None = None) -> ParsedSpell:
    """Decode spell tags back into a query and a canonical command.

    Kinds and limits that do not parse are skipped; since/until expressions
    are re-evaluated relative to *now*.

    Raises:
        SpellDecodeError: If the tags are malformed or the ``cmd`` tag is
            missing or is neither ``REQ`` nor ``COUNT``.
    """
    validated = _validate_tags(tags)

    tag_map: dict[str, list[str]] = {}
    for tag_name, *values in validated:
        tag_map.setdefault(tag_name, []).extend(values)

    cmd = (tag_map.get("cmd") or [None])[0]
    if cmd not in (CommandType.REQ.value, CommandType.COUNT.value):
        raise SpellDecodeError(f"Invalid spell command type: {cmd!r}")
    command_type = CommandType(cmd)

    def first(tag_name: str) -> str | None:
        values = tag_map.get(tag_name)
        return values[0] if values else None

    parameter = None
    for tag_name, *values in validated:
        if tag_name == "l" and values and values[0] in set(SpellParameterType):
            parameter = SpellParameter(SpellParameterType(values[0]), tuple(values[1:]))
            break

    buckets: dict[str, list[str]] = {}
    kinds = [int(k) for k in tag_map.get("k", ()) if _UINT_RE.match(k) and int(k) <= EVENT_KIND_MAX]
    authors = _split_pending(tag_map.get("authors", ()), "authors", buckets)

    tag_filters: dict[str, list[str]] = {}
    for tag_name, *values in validated:
        if tag_name != "tag" or len(values) < 2:
            continue
        letter, rest = values[0], values[1:]
        if len(letter) != 1 or not letter.isascii() or not letter.isalpha():
            continue
        if letter in ("p", "P"):
            rest = _split_pending(rest, f"#{letter}", buckets)
        tag_filters.setdefault(letter, []).extend(rest)

    limit_expr = first("limit")
    since_expr = first("since")
    until_expr = first("until")
    since = parse_timestamp(since_expr, now) if since_expr else None
    until = parse_timestamp(until_expr, now) if until_expr else None

    try:
        filter_ = Filter(
            ids=tuple(tag_map.get("ids", ())),
            authors=tuple(authors),
            kinds=tuple(kinds),
            tags={letter: tuple(values) for letter, values in tag_filters.items()},
            since=since,
            until=until,
            limit=int(limit_expr) if limit_expr and _UINT_RE.match(limit_expr) else None,
            search=first("search") or None,
        )
    except (TypeError, ValueError) as e:
        raise SpellDecodeError(f"Invalid spell filter: {e}") from e

    relays = [url for url in map(try_normalize_relay_url, tag_map.get("relays", ())) if url]

    query = CompiledQuery(
        filter=filter_,
        relays=tuple(relays),
        command_type=command_type,
        close_on_eose="close-on-eose" in tag_map,
        since_expr=since_expr if since is not None else None,
        until_expr=until_expr if until is not None else None,
        needs_account=filter_needs_account(filter_),
        **{bucket: tuple(values) for bucket, values in buckets.items()},
    )

    name = first("name")
    return ParsedSpell(
        command=reconstruct_command(
            filter_,
            query.relays,
            query.since_expr,
            query.until_expr,
            query.close_on_eose,
            command_type,
            pending=query,
        ),
        query=query,
        name=name.strip() or None if name else None,
        description=content or None,
        topics=tuple(tag_map.get("t", ())),
        forked_from=first("e"),
        parameter=parameter,
    )


def decode_spell_event(
    event: Mapping[str, Any],
    cache: ComputationCache | None = None,
    *,
    now: int | None = None,
) -> ParsedSpell:
    """Decode a spell event (a mapping with ``id``, ``tags`` and ``content``).

    With a *cache*, the result is memoized under ``(event id, "spell")``.

    Raises:
        SpellDecodeError: If the event is not a kind-777 spell or its tags
            are invalid.
    """
    kind = event.get("kind", int(EventKind.SPELL))
    if kind != EventKind.SPELL:
        raise SpellDecodeError(f"Not a spell event: kind {kind!r}")
    event_id = event.get("id")

    def decode() -> ParsedSpell:
        parsed = decode_spell(event.get("tags", ()), event.get("content") or "", now=now)
        return ParsedSpell(
            command=parsed.command,
            query=parsed.query,
            name=parsed.name,
            description=parsed.description,
            topics=parsed.topics,
            forked_from=parsed.forked_from,
            parameter=parsed.parameter,
            event_id=event_id,
        )

    if cache is None or not isinstance(event_id, str):
        return decode()
    return cache.get_or_compute(event_id, CACHE_TAG, decode)


# ---------------------------------------------------------------------------
# Command reconstruction
# ---------------------------------------------------------------------------


def _flag_accepts(letter: str, value: str) -> bool:
    """Return True if the dedicated flag for *letter* compiles *value* back unchanged."""
    if letter in ("e", "a"):
        classified = classify_event(value)
        expected = {IdentifierKind.EVENT} if letter == "e" else {IdentifierKind.ADDRESS}
    elif letter in ("p", "P"):
        classified = classify_pubkey(value)
        expected = {IdentifierKind.PUBKEY, IdentifierKind.ALIAS}
    else:
        return True
    return classified is not None and classified.kind in expected and classified.value == value


def _quote(value: str) -> str:
    if not value or any(c.isspace() for c in value) or '"' in value or "'" in value:
        quote = "'" if '"' in value else '"'
        return f"{quote}{value}{quote}"
    return value


def reconstruct_command(
    filter_: Filter,
    relays: Sequence[str] = (),
    since: str | None = None,
    until: str | None = None,
    close_on_eose: bool = False,
    command_type: CommandType = CommandType.REQ,
    *,
    pending: CompiledQuery | None = None,
) -> str:
    """Rebuild a canonical command string from filter components.

    Compiling the result yields an equivalent filter. ``ids`` use ``-i``,
    ``#e`` and ``#a`` use ``-e``, ``#t``/``#d``/``#p``/``#P`` use their own
    flags and any other letter uses ``-T``. A tag filter holding a value its
    own flag would reclassify or drop (``-T e foo``) is written with ``-T``.

    Args:
        filter_: The filter to express.
        relays: Relay URLs appended at the end.
        since: The ``--since`` expression; falls back to ``filter_.since``.
        until: The ``--until`` expression; falls back to ``filter_.until``.
        close_on_eose: Append ``--close-on-eose``.
        command_type: Verb written as the first word.
        pending: A query whose NIP-05 / domain buckets are written back into
            the ``-a``/``-p``/``-P`` values.
    """
    parts: list[str] = [command_type.value.lower()]

    def join(values: Sequence[Any]) -> str:
        return _quote(",".join(str(value) for value in values))

    def pubkeys(name: str) -> list[str]:
        values = list(filter_.get_values(name))
        if pending is not None:
            values.extend(_pending_values(pending, name))
        return values

    if filter_.kinds:
        parts += ["-k", join(filter_.kinds)]
    authors = pubkeys("authors")
    if authors:
        parts += ["-a", join(authors)]
    if filter_.limit is not None:
        parts += ["-l", str(filter_.limit)]
    if filter_.ids:
        parts += ["-i", join(filter_.ids)]

    letters = list(filter_.tags)
    for letter in ("p", "P"):
        if letter not in letters and pending is not None and pubkeys(f"#{letter}"):
            letters.append(letter)
    for letter in letters:
        values = list(filter_.tag(letter))
        waiting = (
            _pending_values(pending, f"#{letter}")
            if pending is not None and letter in ("p", "P")
            else []
        )
        flag = _TAG_FLAGS.get(letter)
        if flag is not None and all(_flag_accepts(letter, value) for value in values):
            parts += [flag, join([*values, *waiting])]
            continue
        if values:
            parts += ["-T", letter, join(values)]
        if waiting and flag is not None:
            parts += [flag, join(waiting)]

    since = since or (str(filter_.since) if filter_.since is not None else None)
    until = until or (str(filter_.until) if filter_.until is not None else None)
    if since:
        parts += ["--since", since]
    if until:
        parts += ["--until", until]
    if filter_.search is not None:
        quote = "'" if '"' in filter_.search else '"'
        parts += ["--search", f"{quote}{filter_.search}{quote}"]
    parts += list(relays)
    if close_on_eose:
        parts.append("--close-on-eose")
    return " ".join(parts)
