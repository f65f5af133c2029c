"""
NIP-19 identifier decoding.

Thin wrappers around the ``nostr_sdk`` bech32 decoders that turn the
identifiers users paste into commands into plain Python values:

* ``npub`` / ``nprofile`` / 64-char hex -- a pubkey, plus relay hints;
* ``note`` / ``nevent`` / 64-char hex -- an event id, plus relay hints;
* ``naddr`` and ``kind:pubkey:identifier`` -- an addressable-event
  coordinate, plus relay hints.

Every decoder returns ``None`` for input it cannot decode instead of
raising: the compiler treats an undecodable value as an unrecognized token.
Relay hints are returned verbatim; normalization is the caller's job.

See Also:
    [reqspell.query.identifiers][]: Classifies command tokens using these
        decoders.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, NamedTuple

from nostr_sdk import EventId, Nip19Coordinate, Nip19Event, Nip19Profile, NostrSdkError, PublicKey

from reqspell.models.constants import EVENT_KIND_MAX


if TYPE_CHECKING:
    from collections.abc import Iterable


HEX64_RE = re.compile(r"^[0-9a-fA-F]{64}$")

# kind:pubkey:identifier -- the identifier may itself contain colons or be empty
_COORDINATE_RE = re.compile(r"^(\d+):([0-9a-fA-F]{64}):(.*)$", re.DOTALL)

_DECODE_ERRORS = (NostrSdkError, ValueError, TypeError)


class ProfilePointer(NamedTuple):
    """A decoded pubkey reference."""

    pubkey: str
    relays: tuple[str, ...] = ()


class EventPointer(NamedTuple):
    """A decoded event reference (``note``, ``nevent`` or hex id)."""

    event_id: str
    relays: tuple[str, ...] = ()
    author: str | None = None
    kind: int | None = None


class AddressPointer(NamedTuple):
    """A decoded addressable-event coordinate (``naddr`` or ``k:p:d``)."""

    kind: int
    pubkey: str
    identifier: str
    relays: tuple[str, ...] = ()

    @property
    def coordinate(self) -> str:
        """The ``kind:pubkey:identifier`` form used in ``#a`` filters."""
        return f"{self.kind}:{self.pubkey}:{self.identifier}"


def is_hex64(value: str) -> bool:
    """Return True if *value* is exactly 64 hexadecimal characters."""
    return HEX64_RE.match(value) is not None


def _relay_hints(relays: Iterable[Any] | None) -> tuple[str, ...]:
    return tuple(str(relay) for relay in relays or ())


def decode_profile(value: str) -> ProfilePointer | None:
    """Decode a hex, ``npub`` or ``nprofile`` pubkey reference.

    Returns:
        A [ProfilePointer][reqspell.nips.nip19.ProfilePointer] with the
        lowercase hex pubkey, or ``None`` if *value* is not a pubkey.
    """
    if is_hex64(value):
        return ProfilePointer(value.lower())
    lowered = value.lower()
    try:
        if lowered.startswith("npub1"):
            return ProfilePointer(PublicKey.parse(lowered).to_hex())
        if lowered.startswith("nprofile1"):
            profile = Nip19Profile.from_bech32(lowered)
            return ProfilePointer(profile.public_key().to_hex(), _relay_hints(profile.relays()))
    except _DECODE_ERRORS:
        return None
    return None


def decode_event(value: str) -> EventPointer | None:
    """Decode a hex, ``note`` or ``nevent`` event reference.

    Returns:
        An [EventPointer][reqspell.nips.nip19.EventPointer] with the
        lowercase hex id, or ``None`` if *value* is not an event reference.
    """
    if is_hex64(value):
        return EventPointer(value.lower())
    lowered = value.lower()
    try:
        if lowered.startswith("note1"):
            return EventPointer(EventId.parse(lowered).to_hex())
        if lowered.startswith("nevent1"):
            pointer = Nip19Event.from_bech32(lowered)
            author = pointer.author()
            kind = pointer.kind()
            return EventPointer(
                pointer.event_id().to_hex(),
                _relay_hints(pointer.relays()),
                author.to_hex() if author is not None else None,
                kind.as_u16() if kind is not None else None,
            )
    except _DECODE_ERRORS:
        return None
    return None


def decode_address(value: str) -> AddressPointer | None:
    """Decode an ``naddr`` or a literal ``kind:pubkey:identifier`` coordinate.

    The identifier of a literal coordinate is everything after the second
    colon, so ``30023:<pk>:a:b`` has identifier ``a:b``.

    Returns:
        An [AddressPointer][reqspell.nips.nip19.AddressPointer], or ``None``
        if *value* is neither form or the kind is out of range.
    """
    match = _COORDINATE_RE.match(value)
    if match is not None:
        kind = int(match.group(1))
        if kind > EVENT_KIND_MAX:
            return None
        return AddressPointer(kind, match.group(2).lower(), match.group(3))

    lowered = value.lower()
    if not lowered.startswith("naddr1"):
        return None
    try:
        pointer = Nip19Coordinate.from_bech32(lowered)
        coordinate = pointer.coordinate()
        return AddressPointer(
            coordinate.kind().as_u16(),
            coordinate.public_key().to_hex(),
            coordinate.identifier(),
            _relay_hints(pointer.relays()),
        )
    except _DECODE_ERRORS:
        return None
