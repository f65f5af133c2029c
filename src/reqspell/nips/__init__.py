"""Nostr Implementation Possibilities -- identifier encodings used in commands.

The NIPs layer sits just above [reqspell.models][reqspell.models] in the
diamond DAG. It performs no I/O: bech32 decoding is CPU-only and NIP-05
support is limited to recognizing identifier shapes.

Attributes:
    decode_profile: ``npub`` / ``nprofile`` / hex pubkey decoding (NIP-19).
    decode_event: ``note`` / ``nevent`` / hex event id decoding (NIP-19).
    decode_address: ``naddr`` / ``kind:pubkey:identifier`` decoding (NIP-19).
    is_nip05: ``local@domain`` or bare-domain recognition (NIP-05).

See Also:
    [reqspell.query.identifiers][]: Token classification built on these
        helpers.
"""

from .nip05 import is_domain, is_nip05, normalize_nip05, split_nip05
from .nip19 import (
    AddressPointer,
    EventPointer,
    ProfilePointer,
    decode_address,
    decode_event,
    decode_profile,
    is_hex64,
)


__all__ = [
    "AddressPointer",
    "EventPointer",
    "ProfilePointer",
    "decode_address",
    "decode_event",
    "decode_profile",
    "is_domain",
    "is_hex64",
    "is_nip05",
    "normalize_nip05",
    "split_nip05",
]
