"""
Classification of values in pubkey and event positions.

Each comma-separated value after ``-a``/``-p``/``-P`` or ``-e``/``-i`` is
classified into exactly one kind, or rejected. Classification is a pure
function returning a small record; it never raises and never performs I/O.

Pubkey positions are checked in this order: account alias, ``@domain``
directory, NIP-05 identifier, ``npub``/``nprofile``, 64-char hex.

Event positions distinguish direct event references (``nevent``, ``note``,
hex) from addressable-event coordinates (``naddr``, ``kind:pubkey:d``).
"""

from __future__ import annotations

from enum import StrEnum
from typing import NamedTuple

from reqspell.models.constants import ACCOUNT_ALIASES
from reqspell.nips.nip05 import is_domain, is_nip05
from reqspell.nips.nip19 import decode_address, decode_event, decode_profile


class IdentifierKind(StrEnum):
    """What a classified value turned out to be."""

    ALIAS = "alias"
    DOMAIN = "domain"
    NIP05 = "nip05"
    PUBKEY = "pubkey"
    EVENT = "event"
    ADDRESS = "address"


class Classified(NamedTuple):
    """A classified value.

    Attributes:
        kind: The identifier kind.
        value: Canonical value: lowercase alias, domain, NIP-05 identifier,
            hex pubkey, hex event id, or ``kind:pubkey:identifier``.
        relays: Relay hints carried by ``nprofile``/``nevent``/``naddr``
            (not yet normalized).
    """

    kind: IdentifierKind
    value: str
    relays: tuple[str, ...] = ()


def classify_pubkey(value: str) -> Classified | None:
    """Classify a value found in a pubkey position.

    Returns:
        A [Classified][reqspell.query.identifiers.Classified] record, or
        ``None`` for values that must be dropped.
    """
    lowered = value.lower()
    if lowered in ACCOUNT_ALIASES:
        return Classified(IdentifierKind.ALIAS, lowered)
    if value.startswith("$"):
        return None

    if value.startswith("@"):
        domain = value[1:]
        if is_domain(domain):
            return Classified(IdentifierKind.DOMAIN, domain.lower())
        return None

    if is_nip05(value):
        return Classified(IdentifierKind.NIP05, lowered)

    pointer = decode_profile(value)
    if pointer is None:
        return None
    return Classified(IdentifierKind.PUBKEY, pointer.pubkey, pointer.relays)


def classify_event(value: str) -> Classified | None:
    """Classify a value found in an event position.

    Returns:
        A record of kind ``EVENT`` (hex id) or ``ADDRESS`` (coordinate), or
        ``None`` for anything else, malformed bech32 included.
    """
    event = decode_event(value)
    if event is not None:
        return Classified(IdentifierKind.EVENT, event.event_id, event.relays)

    address = decode_address(value)
    if address is not None:
        return Classified(IdentifierKind.ADDRESS, address.coordinate, address.relays)
    return None
