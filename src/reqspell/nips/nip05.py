"""
NIP-05 identifier patterns.

Recognizes the DNS-based identifiers accepted in pubkey positions of a
command. Only the *shape* is checked here; resolving an identifier to a
pubkey requires an HTTP lookup and belongs to an
[AliasResolver][reqspell.spells.resolver.AliasResolver].

* ``alice@example.com`` -- a NIP-05 identifier;
* ``example.com`` -- a bare domain, equivalent to ``_@example.com``;
* ``@example.com`` -- a domain directory (every pubkey listed by the
  domain), recognized by the compiler from the leading ``@``.
"""

from __future__ import annotations

import re


_LABEL = r"[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"

DOMAIN_RE = re.compile(rf"^(?=.{{4,253}}$)(?:{_LABEL}\.)+[A-Za-z]{{2,63}}$")

NIP05_RE = re.compile(r"^([A-Za-z0-9._+-]+)@(.+)$")


def is_domain(value: str) -> bool:
    """Return True if *value* looks like a DNS name with an alphabetic TLD."""
    return DOMAIN_RE.match(value) is not None


def is_nip05(value: str) -> bool:
    """Return True if *value* is ``local@domain`` or a bare domain.

    Examples:
        ```python
        is_nip05("alice@example.com")  # True
        is_nip05("example.com")        # True
        is_nip05("@example.com")       # False (domain directory)
        is_nip05("alice@localhost")    # False
        ```
    """
    match = NIP05_RE.match(value)
    if match is not None:
        return is_domain(match.group(2))
    return is_domain(value)


def normalize_nip05(value: str) -> str:
    """Return the lowercase form of a NIP-05 identifier.

    A bare domain is kept as a bare domain; resolvers treat it as
    ``_@domain``.

    Raises:
        ValueError: If *value* is not a NIP-05 identifier.
    """
    if not is_nip05(value):
        raise ValueError(f"Not a NIP-05 identifier: {value!r}")
    return value.lower()


def split_nip05(value: str) -> tuple[str, str]:
    """Split a NIP-05 identifier into ``(local, domain)``.

    A bare domain yields the root local part ``"_"``.

    Raises:
        ValueError: If *value* is not a NIP-05 identifier.
    """
    normalized = normalize_nip05(value)
    if "@" not in normalized:
        return "_", normalized
    local, _, domain = normalized.partition("@")
    return local, domain
