"""
Asynchronous resolution of pending identifiers and account aliases.

The compiler leaves three kinds of values for later:

* NIP-05 identifiers (``alice@example.com``) in the ``nip05_*`` buckets;
* domain directories (``@example.com``) in the ``domain_*`` buckets;
* the ``$me`` / ``$contacts`` aliases inside ``authors``, ``#p`` and ``#P``.

[resolve_query()][reqspell.spells.resolver.resolve_query] looks up every
pending identifier concurrently through an
[AliasResolver][reqspell.spells.resolver.AliasResolver], merges the pubkeys
into the matching filter field and, when an account is supplied,
substitutes the aliases. Network implementations of the resolver (HTTP
``/.well-known/nostr.json`` lookups) live outside this package.

Examples:
    ```python
    class StaticResolver:
        async def resolve_nip05(self, identifier):
            return {"alice@example.com": "ab" * 32}.get(identifier)

        async def resolve_domain(self, domain):
            return []

    compiled = compile_command("-k 1 -a alice@example.com,$me")
    resolved = await resolve_query(compiled, StaticResolver(), AccountContext("cd" * 32))
    resolved.filter.authors  # ('cdcd...', 'abab...')
    ```
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from reqspell.models.compiled_query import ALIAS_FIELDS, PENDING_BUCKETS
from reqspell.models.constants import ALIAS_CONTACTS, ALIAS_ME
from reqspell.nips.nip19 import is_hex64


if TYPE_CHECKING:
    from reqspell.core.config import QueryConfig
    from reqspell.core.logger import Logger
    from reqspell.models.compiled_query import CompiledQuery
    from reqspell.models.filter import Filter


@runtime_checkable
class AliasResolver(Protocol):
    """Looks up pubkeys for NIP-05 identifiers and domain directories."""

    async def resolve_nip05(self, identifier: str) -> str | None:
        """Return the hex pubkey of *identifier*, or ``None`` if unknown."""
        ...

    async def resolve_domain(self, domain: str) -> list[str]:
        """Return every hex pubkey listed by *domain*."""
        ...


@dataclass(frozen=True, slots=True)
class AccountContext:
    """The active account used to substitute ``$me`` and ``$contacts``.

    Attributes:
        pubkey: Hex pubkey of the active account, if logged in.
        contacts: Hex pubkeys from the account's contact list.
    """

    pubkey: str | None = None
    contacts: tuple[str, ...] = ()


def substitute_aliases(filter_: Filter, account: AccountContext) -> Filter:
    """Replace ``$me`` and ``$contacts`` in ``authors``, ``#p`` and ``#P``.

    ``$me`` becomes the account pubkey (dropped without one); ``$contacts``
    expands to the contact list. Order is preserved and duplicates removed.
    """
    for name in ALIAS_FIELDS:
        values = filter_.get_values(name)
        if not any(value in (ALIAS_ME, ALIAS_CONTACTS) for value in values):
            continue
        expanded: list[str] = []
        for value in values:
            if value == ALIAS_ME:
                if account.pubkey is not None:
                    expanded.append(account.pubkey)
            elif value == ALIAS_CONTACTS:
                expanded.extend(account.contacts)
            else:
                expanded.append(value)
        filter_ = filter_.with_values(name, expanded)
    return filter_


async def resolve_query(
    compiled: CompiledQuery,
    resolver: AliasResolver,
    account: AccountContext | None = None,
    *,
    max_concurrency: int = 8,
    logger: Logger | None = None,
) -> CompiledQuery:
    """Resolve every pending identifier of *compiled*.

    Lookups run concurrently, at most *max_concurrency* at a time. A lookup
    that raises is logged at warning level and treated as unresolved; it
    never aborts the others. Cancellation propagates.

    Args:
        compiled: Output of the compiler.
        resolver: Lookup backend.
        account: When given, ``$me``/``$contacts`` are substituted too.
        max_concurrency: Upper bound on concurrent lookups.
        logger: Receives warnings for failed lookups.

    Returns:
        A new query whose buckets are empty, whose filter contains the
        resolved pubkeys (appended in bucket order) and whose
        ``needs_account`` reflects any alias still present.
    """
    semaphore = asyncio.Semaphore(max_concurrency)

    async def lookup(bucket: str, identifier: str) -> list[str]:
        async with semaphore:
            try:
                if bucket.startswith("nip05_"):
                    pubkey = await resolver.resolve_nip05(identifier)
                    return [pubkey] if pubkey else []
                return list(await resolver.resolve_domain(identifier))
            except Exception as e:  # resolver error boundary
                if logger is not None:
                    logger.warning(
                        "identifier_resolution_failed",
                        bucket=bucket,
                        identifier=identifier,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                return []

    jobs = [
        (target, identifier)
        for target in PENDING_BUCKETS
        for identifier in getattr(compiled, target.bucket)
    ]
    results = await asyncio.gather(*(lookup(target.bucket, ident) for target, ident in jobs))

    filter_ = compiled.filter
    for (target, identifier), pubkeys in zip(jobs, results, strict=True):
        valid = [p.lower() for p in pubkeys if isinstance(p, str) and is_hex64(p)]
        if valid:
            filter_ = filter_.merged(target.field, valid)
        elif logger is not None:
            logger.debug("identifier_unresolved", bucket=target.bucket, identifier=identifier)

    if account is not None:
        filter_ = substitute_aliases(filter_, account)

    return compiled.evolve(filter=filter_, **{target.bucket: () for target in PENDING_BUCKETS})


def apply_default_limit(compiled: CompiledQuery, limit: int) -> CompiledQuery:
    """Return *compiled* with ``limit`` set to *limit* when the command gave none."""
    if compiled.filter.limit is not None:
        return compiled
    return compiled.evolve(filter=replace(compiled.filter, limit=limit))


async def prepare_query(
    compiled: CompiledQuery,
    resolver: AliasResolver,
    config: QueryConfig,
    account: AccountContext | None = None,
    *,
    logger: Logger | None = None,
) -> CompiledQuery:
    """Resolve *compiled* and apply the configured default limit.

    Lookups run at most ``config.max_resolver_concurrency`` at a time; the
    limit falls back to ``config.default_limit``.
    """
    resolved = await resolve_query(
        compiled,
        resolver,
        account,
        max_concurrency=config.max_resolver_concurrency,
        logger=logger,
    )
    return apply_default_limit(resolved, config.default_limit)
