"""Tests for the in-memory data store."""

from typing import Any

import pytest

from folio.core.query import SortDirection, SortField
from folio.store.base import DataStore, RangeRead
from folio.store.memory import InMemoryDataStore, compare_keys, matches

ASC_ID = (SortField("id", SortDirection.ASC),)


class TestCompareKeys:
    """Test composite key comparison."""

    def test_direction_flips_result(self) -> None:
        desc = (SortField("id", SortDirection.DESC),)
        assert compare_keys((1,), (2,), ASC_ID) < 0
        assert compare_keys((1,), (2,), desc) > 0

    def test_none_sorts_first(self) -> None:
        assert compare_keys((None,), (0,), ASC_ID) < 0

    def test_later_fields_break_ties(self) -> None:
        sort = (SortField("score", SortDirection.ASC), SortField("id", SortDirection.DESC))
        assert compare_keys((1, 5), (1, 3), sort) < 0


class TestMatches:
    """Test the filter dialect."""

    record = {"id": 3, "group": "a", "meta": {"tag": "x"}}

    @pytest.mark.parametrize(
        "filter,expected",
        [
            ({}, True),
            ({"group": "a"}, True),
            ({"group": "b"}, False),
            ({"id": {"$gt": 2, "$lte": 3}}, True),
            ({"id": {"$in": [1, 2]}}, False),
            ({"id": {"$nin": [1, 2]}}, True),
            ({"meta.tag": "x"}, True),
            ({"missing": {"$exists": False}}, True),
            ({"missing": {"$gt": 1}}, False),
        ],
    )
    def test_filter(self, filter: dict[str, Any], expected: bool) -> None:
        assert matches(self.record, filter) is expected

    def test_unknown_operator(self) -> None:
        with pytest.raises(ValueError):
            matches(self.record, {"id": {"$regex": "x"}})


class TestInMemoryDataStore:
    """Test range reads and counts."""

    def test_satisfies_protocol(self, store: InMemoryDataStore) -> None:
        assert isinstance(store, DataStore)

    @pytest.mark.asyncio
    async def test_find_after_key(self, store: InMemoryDataStore) -> None:
        rows = await store.find(RangeRead(filter={}, sort=ASC_ID, limit=3, after=(10,)))
        assert [r["id"] for r in rows] == [11, 12, 13]
        assert store.reads == 1

    @pytest.mark.asyncio
    async def test_find_with_skip(self, store: InMemoryDataStore) -> None:
        rows = await store.find(RangeRead(filter={}, sort=ASC_ID, limit=2, skip=5))
        assert [r["id"] for r in rows] == [6, 7]

    @pytest.mark.asyncio
    async def test_count_filtered(self, store: InMemoryDataStore) -> None:
        assert await store.count({"group": "a"}, max_time_ms=100) == 25
        assert store.counts == 1

    @pytest.mark.asyncio
    async def test_reset_counters(self, store: InMemoryDataStore) -> None:
        await store.count({}, max_time_ms=100)
        store.reset_counters()
        assert store.counts == 0
        assert store.reads == 0
