"""Tests for query normalization and fingerprinting."""

import pytest

from folio.core.query import (
    PageQuery,
    SortDirection,
    SortField,
    ensure_stable_sort,
    fingerprint_of,
    get_path,
    normalize_sort,
)
from folio.errors import InvalidOptions


class TestSortNormalization:
    """Test the accepted sort spellings."""

    def test_mapping_sort(self) -> None:
        """Mapping sort keeps insertion order."""
        fields = normalize_sort({"score": -1, "id": 1})
        assert fields == (
            SortField("score", SortDirection.DESC),
            SortField("id", SortDirection.ASC),
        )

    def test_pair_sort_with_words(self) -> None:
        """Direction words are accepted."""
        fields = normalize_sort([("score", "desc"), ("id", "asc")])
        assert [f.direction for f in fields] == [SortDirection.DESC, SortDirection.ASC]

    def test_invalid_direction(self) -> None:
        """Unknown directions are rejected."""
        with pytest.raises(InvalidOptions):
            normalize_sort({"score": 2})

    def test_bool_direction_rejected(self) -> None:
        """True is not a direction even though it equals 1."""
        with pytest.raises(InvalidOptions):
            normalize_sort({"score": True})

    def test_duplicate_field_rejected(self) -> None:
        """A field may appear only once."""
        with pytest.raises(InvalidOptions):
            normalize_sort([("id", 1), ("id", -1)])

    def test_none_sort(self) -> None:
        """Missing sort normalizes to empty."""
        assert normalize_sort(None) == ()


class TestTieBreaker:
    """Test unique tie-breaker enforcement."""

    def test_appended_when_missing(self) -> None:
        """Tie-breaker follows the last field's direction."""
        stable = ensure_stable_sort((SortField("score", SortDirection.DESC),), "id")
        assert stable[-1] == SortField("id", SortDirection.DESC)

    def test_not_duplicated(self) -> None:
        """Sort already containing the tie-breaker is unchanged."""
        sort = (SortField("id", SortDirection.ASC), SortField("score", SortDirection.DESC))
        assert ensure_stable_sort(sort, "id") == sort

    def test_empty_sort_gets_ascending_tie_breaker(self) -> None:
        """Empty sort becomes ascending on the tie-breaker."""
        assert ensure_stable_sort((), "id") == (SortField("id", SortDirection.ASC),)


class TestPageQuery:
    """Test PageQuery construction and fingerprinting."""

    def test_create_enforces_tie_breaker(self) -> None:
        """create() appends the tie-breaker."""
        query = PageQuery.create(sort={"score": 1}, limit=5)
        assert query.sort_fields == ("score", "id")

    def test_invalid_limit(self) -> None:
        """Non-positive limits are rejected."""
        with pytest.raises(InvalidOptions):
            PageQuery.create(limit=0)
        with pytest.raises(InvalidOptions):
            PageQuery.create(limit=True)  # type: ignore[arg-type]

    def test_fingerprint_ignores_filter_key_order(self) -> None:
        """Semantically identical filters hash identically."""
        a = PageQuery.create(filter={"group": "a", "score": {"$gte": 2, "$lt": 5}}, limit=5)
        b = PageQuery.create(filter={"score": {"$lt": 5, "$gte": 2}, "group": "a"}, limit=5)
        assert a.fingerprint == b.fingerprint

    def test_fingerprint_depends_on_limit(self) -> None:
        """Different page sizes are different queries."""
        assert PageQuery.create(limit=5).fingerprint != PageQuery.create(limit=6).fingerprint

    def test_fingerprint_depends_on_sort_order(self) -> None:
        """Sort field order is significant."""
        a = PageQuery.create(sort=[("score", 1), ("group", 1)])
        b = PageQuery.create(sort=[("group", 1), ("score", 1)])
        assert a.fingerprint != b.fingerprint

    def test_fingerprint_of_set_operand_is_order_free(self) -> None:
        """Set operands hash by content, not by iteration order."""
        a = PageQuery.create(filter={"group": {"$in": {"a", "b", "c"}}})
        sorted_list = fingerprint_of({"group": {"$in": ["a", "b", "c"]}}, a.sort, a.limit)
        assert a.fingerprint == sorted_list
        frozen = fingerprint_of({"group": {"$in": frozenset("cba")}}, a.sort, a.limit)
        assert frozen == sorted_list

    def test_fingerprint_is_hex_sha256(self) -> None:
        """Fingerprint is 64 hex characters."""
        fp = PageQuery.create().fingerprint
        assert len(fp) == 64
        int(fp, 16)

    def test_sort_key(self) -> None:
        """sort_key reads fields in sort order."""
        query = PageQuery.create(sort={"score": -1})
        assert query.sort_key({"id": 3, "score": 9}) == (9, 3)

    def test_with_limit(self) -> None:
        """with_limit keeps filter and sort."""
        query = PageQuery.create(filter={"group": "a"}, sort={"score": 1}, limit=5)
        other = query.with_limit(10)
        assert other.limit == 10
        assert other.sort == query.sort
        assert other.filter == query.filter


class TestGetPath:
    """Test dotted field access."""

    def test_nested(self) -> None:
        assert get_path({"a": {"b": 2}}, "a.b") == 2

    def test_missing(self) -> None:
        assert get_path({"a": 1}, "a.b") is None
