"""
REQ/COUNT command compiler.

Turns a tokenized command into a
[CompiledQuery][reqspell.models.compiled_query.CompiledQuery]: a NIP-01
[Filter][reqspell.models.filter.Filter], the relay list, the boolean
options and the buckets of NIP-05/domain identifiers that still need
network resolution.

Compilation is lenient and never raises. Each token is classified and
either applied or skipped; unknown flags, malformed numbers, undecodable
identifiers and incomplete flag arguments are dropped one by one, so a
single typo never discards the rest of the command. The only strict gate
is [require_constraints()][reqspell.query.compiler.require_constraints],
applied by whoever executes or saves the query.

Flag grammar:

| Flag | Target | Value |
|---|---|---|
| ``-k``/``--kind`` | ``kinds`` | comma-separated integers 0..65535 |
| ``-a``/``--author`` | ``authors`` | pubkeys, NIP-05, ``@domain``, aliases |
| ``-p`` / ``-P`` | ``#p`` / ``#P`` | same as ``-a`` |
| ``-e`` | ``#e`` / ``#a`` | event references / address coordinates |
| ``-i``/``--id`` | ``ids`` | event references only |
| ``-t`` / ``-d`` | ``#t`` / ``#d`` | comma-separated strings |
| ``-T``/``--tag`` | ``#<letter>`` | a single letter, then comma-separated strings |
| ``-l``/``--limit`` | ``limit`` | non-negative integer |
| ``--since``/``--until`` | ``since``/``until`` | see [parse_timestamp][reqspell.query.timestamps.parse_timestamp] |
| ``--search`` | ``search`` | verbatim |
| ``--close-on-eose`` | ``close_on_eose`` | none |
| ``-f``/``--follow`` | ``follow`` | none |

Any other non-flag token that looks like a relay (``wss://...`` or a bare
domain) is normalized and added to the relay list.

Examples:
    ```python
    compiled = compile_command("-k 1,3 -t nostr -l 20 relay.example.com")
    compiled.filter.to_dict()  # {'kinds': [1, 3], '#t': ['nostr'], 'limit': 20}
    compiled.relays            # ('wss://relay.example.com/',)
    ```
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from reqspell.core.exceptions import EmptyFilterError
from reqspell.models.compiled_query import CompiledQuery, filter_needs_account
from reqspell.models.constants import EVENT_KIND_MAX, CommandType
from reqspell.models.filter import Filter
from reqspell.models.relay import has_relay_scheme, is_relay_reference, try_normalize_relay_url

from .identifiers import IdentifierKind, classify_event, classify_pubkey
from .timestamps import parse_timestamp
from .tokenizer import split_command


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from reqspell.core.logger import Logger


_UINT_RE = re.compile(r"^[0-9]+$")

# Pending-resolution bucket names per pubkey target field
_NIP05_BUCKETS: dict[str, str] = {
    "authors": "nip05_authors",
    "#p": "nip05_p_tags",
    "#P": "nip05_p_tags_uppercase",
}
_DOMAIN_BUCKETS: dict[str, str] = {
    "authors": "domain_authors",
    "#p": "domain_p_tags",
    "#P": "domain_p_tags_uppercase",
}


def _split_values(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


@dataclass
class _Accumulator:
    """Mutable per-command state, frozen into a CompiledQuery at the end."""

    logger: Logger | None = None
    now: int | None = None
    fields: dict[str, list[str]] = field(default_factory=dict)
    kinds: list[int] = field(default_factory=list)
    relays: list[str] = field(default_factory=list)
    buckets: dict[str, list[str]] = field(default_factory=dict)
    since: int | None = None
    until: int | None = None
    since_expr: str | None = None
    until_expr: str | None = None
    limit: int | None = None
    search: str | None = None
    close_on_eose: bool = False
    follow: bool = False

    # -- helpers ----------------------------------------------------------

    def debug(self, msg: str, **kwargs: object) -> None:
        if self.logger is not None:
            self.logger.debug(msg, **kwargs)

    def add(self, name: str, value: str) -> None:
        self.fields.setdefault(name, []).append(value)

    def split(self, flag: str, value: str) -> list[str]:
        """Split a comma list, dropping parts that contain null bytes."""
        parts: list[str] = []
        for part in _split_values(value):
            if "\x00" in part:
                self.debug("value_dropped", flag=flag, value=part, reason="null_byte")
            else:
                parts.append(part)
        return parts

    def add_hints(self, hints: Iterable[str]) -> None:
        for hint in hints:
            url = try_normalize_relay_url(hint)
            if url is None:
                self.debug("relay_hint_dropped", relay=hint)
            else:
                self.relays.append(url)

    # -- value handlers (return True when at least one value was accepted)

    def kinds_value(self, flag: str, value: str) -> bool:
        accepted = False
        for part in self.split(flag, value):
            if _UINT_RE.match(part) and int(part) <= EVENT_KIND_MAX:
                self.kinds.append(int(part))
                accepted = True
            else:
                self.debug("value_dropped", flag=flag, value=part)
        return accepted

    def strings_value(self, name: str, flag: str, value: str) -> bool:
        parts = self.split(flag, value)
        for part in parts:
            self.add(name, part)
        return bool(parts)

    def pubkeys_value(self, name: str, flag: str, value: str) -> bool:
        accepted = False
        for part in self.split(flag, value):
            classified = classify_pubkey(part)
            if classified is None:
                self.debug("value_dropped", flag=flag, value=part)
                continue
            accepted = True
            if classified.kind == IdentifierKind.NIP05:
                self.buckets.setdefault(_NIP05_BUCKETS[name], []).append(classified.value)
            elif classified.kind == IdentifierKind.DOMAIN:
                self.buckets.setdefault(_DOMAIN_BUCKETS[name], []).append(classified.value)
            else:
                self.add(name, classified.value)
                self.add_hints(classified.relays)
        return accepted

    def events_value(self, direct: bool, flag: str, value: str) -> bool:
        accepted = False
        for part in self.split(flag, value):
            classified = classify_event(part)
            if classified is None:
                self.debug("value_dropped", flag=flag, value=part)
                continue
            if classified.kind == IdentifierKind.ADDRESS:
                if direct:
                    self.debug("value_dropped", flag=flag, value=part, reason="address")
                    continue
                self.add("#a", classified.value)
            else:
                self.add("ids" if direct else "#e", classified.value)
            self.add_hints(classified.relays)
            accepted = True
        return accepted

    def limit_value(self, flag: str, value: str) -> bool:
        if not _UINT_RE.match(value):
            self.debug("value_dropped", flag=flag, value=value)
            return False
        self.limit = int(value)
        return True

    def since_value(self, flag: str, value: str) -> bool:
        timestamp = parse_timestamp(value, self.now)
        if timestamp is None:
            self.debug("value_dropped", flag=flag, value=value)
            return False
        self.since, self.since_expr = timestamp, value
        return True

    def until_value(self, flag: str, value: str) -> bool:
        timestamp = parse_timestamp(value, self.now)
        if timestamp is None:
            self.debug("value_dropped", flag=flag, value=value)
            return False
        self.until, self.until_expr = timestamp, value
        return True

    def search_value(self, flag: str, value: str) -> bool:
        if "\x00" in value:
            self.debug("value_dropped", flag=flag, value=value, reason="null_byte")
            return False
        self.search = value
        return True

    # -- flag dispatch ----------------------------------------------------

    VALUE_FLAGS: ClassVar[dict[str, Callable[[_Accumulator, str, str], bool]]] = {
        "-k": kinds_value,
        "--kind": kinds_value,
        "-a": lambda acc, flag, value: acc.pubkeys_value("authors", flag, value),
        "--author": lambda acc, flag, value: acc.pubkeys_value("authors", flag, value),
        "-p": lambda acc, flag, value: acc.pubkeys_value("#p", flag, value),
        "-P": lambda acc, flag, value: acc.pubkeys_value("#P", flag, value),
        "-e": lambda acc, flag, value: acc.events_value(False, flag, value),
        "-i": lambda acc, flag, value: acc.events_value(True, flag, value),
        "--id": lambda acc, flag, value: acc.events_value(True, flag, value),
        "-t": lambda acc, flag, value: acc.strings_value("#t", flag, value),
        "-d": lambda acc, flag, value: acc.strings_value("#d", flag, value),
        "-l": limit_value,
        "--limit": limit_value,
        "--since": since_value,
        "--until": until_value,
        "--search": search_value,
    }

    def build(self, command_type: CommandType) -> CompiledQuery:
        tags = {name[1:]: tuple(values) for name, values in self.fields.items() if name[0] == "#"}
        filter_ = Filter(
            ids=tuple(self.fields.get("ids", ())),
            authors=tuple(self.fields.get("authors", ())),
            kinds=tuple(self.kinds),
            tags=tags,
            since=self.since,
            until=self.until,
            limit=self.limit,
            search=self.search,
        )
        return CompiledQuery(
            filter=filter_,
            relays=tuple(self.relays),
            command_type=command_type,
            close_on_eose=self.close_on_eose,
            follow=self.follow,
            since_expr=self.since_expr,
            until_expr=self.until_expr,
            needs_account=filter_needs_account(filter_),
            **{name: tuple(values) for name, values in self.buckets.items()},
        )


def _is_tag_letter(value: str) -> bool:
    return len(value) == 1 and value.isascii() and value.isalpha()


def compile_tokens(
    tokens: Sequence[str],
    account_pubkey: str | None = None,
    *,
    command_type: CommandType = CommandType.REQ,
    now: int | None = None,
    logger: Logger | None = None,
) -> CompiledQuery:
    """Compile a token list (without its ``req``/``count`` prefix).

    Args:
        tokens: Tokens as produced by [tokenize()][reqspell.query.tokenizer.tokenize].
        account_pubkey: Active account, if any. Only consulted for
            diagnostics: aliases are never resolved inline.
        command_type: Verb recorded on the result.
        now: Reference time for relative ``--since``/``--until`` values.
        logger: Receives a debug record for every dropped token or value.

    Returns:
        The compiled query. Never raises for malformed input.
    """
    acc = _Accumulator(logger=logger, now=now)
    i = 0
    count = len(tokens)

    while i < count:
        token = tokens[i]
        following = tokens[i + 1] if i + 1 < count else None

        if token == "--close-on-eose":
            acc.close_on_eose = True
            i += 1
        elif token in ("-f", "--follow"):
            acc.follow = True
            i += 1
        elif token in ("-T", "--tag"):
            values = tokens[i + 2] if i + 2 < count else None
            if (
                following is not None
                and values is not None
                and _is_tag_letter(following)
                and not has_relay_scheme(values)
                and acc.strings_value(f"#{following}", token, values)
            ):
                i += 3
            else:
                acc.debug("flag_skipped", flag=token, letter=following)
                i += 1
        elif token in _Accumulator.VALUE_FLAGS:
            if following is None:
                acc.debug("flag_skipped", flag=token, reason="missing_value")
                i += 1
            elif token != "--search" and has_relay_scheme(following):
                acc.debug("flag_skipped", flag=token, reason="relay_value")
                i += 1
            elif _Accumulator.VALUE_FLAGS[token](acc, token, following):
                i += 2
            else:
                i += 1
        elif token.startswith("-"):
            acc.debug("token_ignored", token=token, reason="unknown_flag")
            i += 1
        elif is_relay_reference(token):
            url = try_normalize_relay_url(token)
            if url is None:
                acc.debug("token_ignored", token=token, reason="invalid_relay")
            else:
                acc.relays.append(url)
            i += 1
        else:
            acc.debug("token_ignored", token=token, reason="positional")
            i += 1

    compiled = acc.build(command_type)
    if compiled.needs_account and account_pubkey is None:
        acc.debug("account_required", command=command_type.value)
    return compiled


def compile_command(
    command: str,
    account_pubkey: str | None = None,
    *,
    now: int | None = None,
    logger: Logger | None = None,
) -> CompiledQuery:
    """Tokenize, strip the ``req``/``count`` prefix and compile *command*."""
    command_type, tokens = split_command(command)
    return compile_tokens(
        tokens, account_pubkey, command_type=command_type, now=now, logger=logger
    )


def require_constraints(compiled: CompiledQuery) -> CompiledQuery:
    """Return *compiled* unchanged if its filter constrains the query.

    Raises:
        EmptyFilterError: If the filter has no kinds, authors, ids, tag
            filters, limit, time bounds or search. Pending NIP-05 and
            domain identifiers count as constraints since they resolve into
            ``authors``/``#p``/``#P``.
    """
    if compiled.filter.has_constraints() or compiled.has_pending:
        return compiled
    raise EmptyFilterError(
        "Command must specify at least one filter (kinds, authors, ids, tags, "
        "limit, since, until or search)"
    )
