"""
Pytest configuration and shared fixtures for ReqSpell tests.

Provides:
- NIP-19 test vectors and bech32 builders for nprofile/nevent/naddr/note
- A fixed reference time for relative time expressions
- Logger fixtures wired to caplog
- Custom pytest markers for test categorization
"""

from __future__ import annotations

import logging
import struct
from collections.abc import Callable, Sequence

import pytest
from bech32 import bech32_encode, convertbits

from reqspell.core.logger import Logger


# ============================================================================
# NIP-19 Test Vectors
# ============================================================================

PUBKEY_HEX = "7e7e9c42a91bfef19fa929e5fda1b72e0ebc1a4c1141673e2794234d86addf4e"
PUBKEY_NPUB = "npub10elfcs4fr0l0r8af98jlmgdh9c8tcxjvz9qkw038js35mp4dma8qzvjptg"

PROFILE_HEX = "3bf0c63fcb93463407af97a5e5ee64fa883d107ef9e558472c4eb9aaaefa459d"
PROFILE_NPROFILE = (
    "nprofile1qqsrhuxx8l9ex335q7he0f09aej04zpazpl0ne2cgukyawd24mayt8gpp4mhxue69uhhytnc9e3k7mgp"
    "z4mhxue69uhkg6nzv9ejuumpv34kytnrdaksjlyr9p"
)
PROFILE_RELAYS = ("wss://r.x.com", "wss://djbas.sadkb.com")

EVENT_HEX = "b9f5441e45ca39179320e0031cfb18e34078673dcc3d3e3a3b3a981760aa5696"
OTHER_HEX = "d" * 64

NOW = 1_700_000_000


# ============================================================================
# Bech32 Builders
# ============================================================================


def _bech32(hrp: str, payload: bytes) -> str:
    data = convertbits(payload, 8, 5)
    assert data is not None
    return bech32_encode(hrp, data)


def _tlv(entries: Sequence[tuple[int, bytes]]) -> bytes:
    return b"".join(bytes([kind, len(value)]) + value for kind, value in entries)


def encode_note(event_id: str) -> str:
    """Return the ``note1...`` encoding of a hex event id."""
    return _bech32("note", bytes.fromhex(event_id))


def encode_npub(pubkey: str) -> str:
    """Return the ``npub1...`` encoding of a hex pubkey."""
    return _bech32("npub", bytes.fromhex(pubkey))


def encode_nprofile(pubkey: str, relays: Sequence[str] = ()) -> str:
    """Return an ``nprofile1...`` with the given relay hints."""
    entries = [(0, bytes.fromhex(pubkey))]
    entries += [(1, relay.encode()) for relay in relays]
    return _bech32("nprofile", _tlv(entries))


def encode_nevent(
    event_id: str,
    relays: Sequence[str] = (),
    author: str | None = None,
    kind: int | None = None,
) -> str:
    """Return an ``nevent1...`` with optional relay hints, author and kind."""
    entries = [(0, bytes.fromhex(event_id))]
    entries += [(1, relay.encode()) for relay in relays]
    if author is not None:
        entries.append((2, bytes.fromhex(author)))
    if kind is not None:
        entries.append((3, struct.pack(">I", kind)))
    return _bech32("nevent", _tlv(entries))


def encode_naddr(kind: int, pubkey: str, identifier: str, relays: Sequence[str] = ()) -> str:
    """Return an ``naddr1...`` for the ``kind:pubkey:identifier`` coordinate."""
    entries = [(0, identifier.encode())]
    entries += [(1, relay.encode()) for relay in relays]
    entries += [(2, bytes.fromhex(pubkey)), (3, struct.pack(">I", kind))]
    return _bech32("naddr", _tlv(entries))


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


@pytest.fixture
def now() -> int:
    """Fixed reference time (unix seconds) for relative expressions."""
    return NOW


@pytest.fixture
def logger() -> Logger:
    """Structured logger whose records are visible to caplog."""
    return Logger("reqspell.test")


@pytest.fixture
def nevent_factory() -> Callable[..., str]:
    """Builder for nevent identifiers."""
    return encode_nevent


@pytest.fixture
def naddr_factory() -> Callable[..., str]:
    """Builder for naddr identifiers."""
    return encode_naddr


@pytest.fixture
def nprofile_factory() -> Callable[..., str]:
    """Builder for nprofile identifiers."""
    return encode_nprofile


# ============================================================================
# Markers
# ============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests (no external dependencies)")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on location."""
    for item in items:
        if "/unit/" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
