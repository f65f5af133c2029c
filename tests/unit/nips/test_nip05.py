"""
Unit tests for nips.nip05 module.

Tests:
- is_domain() and is_nip05() shape checks
- normalize_nip05() and split_nip05()
"""

import pytest

from reqspell.nips.nip05 import is_domain, is_nip05, normalize_nip05, split_nip05


class TestShapes:
    """is_domain() and is_nip05()."""

    @pytest.mark.parametrize("value", ["example.com", "sub.example.co.uk", "a-b.io"])
    def test_domains(self, value: str) -> None:
        assert is_domain(value) is True

    @pytest.mark.parametrize("value", ["localhost", "example", "-bad.com", "x.c", "a..com", ""])
    def test_not_domains(self, value: str) -> None:
        assert is_domain(value) is False

    @pytest.mark.parametrize(
        "value", ["alice@example.com", "_@example.com", "Bob.Smith@Example.COM", "example.com"]
    )
    def test_nip05(self, value: str) -> None:
        assert is_nip05(value) is True

    @pytest.mark.parametrize(
        "value", ["@example.com", "alice@localhost", "alice@", "a b@example.com", "$me", "a" * 64]
    )
    def test_not_nip05(self, value: str) -> None:
        assert is_nip05(value) is False


class TestNormalize:
    """normalize_nip05() and split_nip05()."""

    def test_lowercased(self) -> None:
        assert normalize_nip05("Alice@Example.COM") == "alice@example.com"

    def test_invalid_raises(self) -> None:
        with pytest.raises(ValueError, match="NIP-05"):
            normalize_nip05("not an identifier")

    def test_split(self) -> None:
        assert split_nip05("alice@example.com") == ("alice", "example.com")

    def test_split_bare_domain(self) -> None:
        assert split_nip05("Example.com") == ("_", "example.com")
