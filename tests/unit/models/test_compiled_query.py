"""
Unit tests for models.compiled_query module.

Tests:
- Bucket deduplication and pending() view
- needs_account recomputation in evolve()
- to_dict() serialization
"""

from reqspell.models import PENDING_BUCKETS, CommandType, CompiledQuery, Filter
from reqspell.models.compiled_query import filter_needs_account


class TestCompiledQuery:
    """CompiledQuery construction and helpers."""

    def test_defaults(self) -> None:
        q = CompiledQuery()
        assert q.command_type == CommandType.REQ
        assert q.relays == ()
        assert q.has_pending is False
        assert q.pending() == {}

    def test_buckets_deduplicated(self) -> None:
        q = CompiledQuery(nip05_authors=("a@x.com", "b@x.com", "a@x.com"))
        assert q.nip05_authors == ("a@x.com", "b@x.com")
        assert q.has_pending is True

    def test_relays_deduplicated(self) -> None:
        q = CompiledQuery(relays=("wss://a.com/", "wss://b.com/", "wss://a.com/"))
        assert q.relays == ("wss://a.com/", "wss://b.com/")

    def test_command_type_coerced(self) -> None:
        assert CompiledQuery(command_type="COUNT").command_type == CommandType.COUNT  # type: ignore[arg-type]

    def test_pending_lists_non_empty_buckets(self) -> None:
        q = CompiledQuery(domain_p_tags=("example.com",))
        assert q.pending() == {"domain_p_tags": ("example.com",)}

    def test_six_buckets(self) -> None:
        assert [t.field for t in PENDING_BUCKETS] == [
            "authors",
            "#p",
            "#P",
            "authors",
            "#p",
            "#P",
        ]

    def test_evolve_recomputes_needs_account(self) -> None:
        q = CompiledQuery(filter=Filter(authors=("$me",)), needs_account=True)
        resolved = q.evolve(filter=Filter(authors=("a" * 64,)))
        assert resolved.needs_account is False

    def test_to_dict(self) -> None:
        q = CompiledQuery(
            filter=Filter(kinds=(1,)),
            relays=("wss://a.com/",),
            close_on_eose=True,
            nip05_authors=("alice@x.com",),
        )
        assert q.to_dict() == {
            "command": "REQ",
            "filter": {"kinds": [1]},
            "relays": ["wss://a.com/"],
            "close_on_eose": True,
            "follow": False,
            "needs_account": False,
            "nip05_authors": ["alice@x.com"],
        }


class TestFilterNeedsAccount:
    """filter_needs_account()."""

    def test_alias_in_authors(self) -> None:
        assert filter_needs_account(Filter(authors=("$me",))) is True

    def test_alias_in_uppercase_p(self) -> None:
        assert filter_needs_account(Filter(tags={"P": ("$contacts",)})) is True

    def test_alias_in_other_tag_ignored(self) -> None:
        assert filter_needs_account(Filter(tags={"t": ("$me",)})) is False

    def test_no_alias(self) -> None:
        assert filter_needs_account(Filter(authors=("a" * 64,))) is False
