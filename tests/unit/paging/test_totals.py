"""Tests for sync and single-flight async totals."""

import asyncio

import pytest

from folio.cache.memory import MemoryCacheStore
from folio.core.query import PageQuery
from folio.errors import InvalidOptions, PaginationTimeout
from folio.paging.totals import TotalsEstimator, TotalsRecord, TotalsStatus, total_pages_for
from folio.store.memory import InMemoryDataStore


@pytest.fixture
def query() -> PageQuery:
    return PageQuery.create(filter={"group": "a"}, sort={"id": 1}, limit=5)


def test_total_pages_for() -> None:
    assert total_pages_for(50, 5) == 10
    assert total_pages_for(51, 5) == 11
    assert total_pages_for(0, 5) == 0


def test_record_dict_roundtrip() -> None:
    record = TotalsRecord(token="t", fingerprint="t", status=TotalsStatus.READY, total=3)
    assert TotalsRecord.from_dict(record.to_dict()) == record


class TestSyncTotals:
    """Test inline bounded counting."""

    @pytest.mark.asyncio
    async def test_sync_count(
        self, store: InMemoryDataStore, cache: MemoryCacheStore, query: PageQuery
    ) -> None:
        record = await TotalsEstimator(store, cache).sync(query)
        assert record.status == TotalsStatus.READY
        assert record.mode == "sync"
        assert record.total == 25
        assert record.total_pages == 5
        assert await cache.get(f"folio:tot:{query.fingerprint}") is not None

    @pytest.mark.asyncio
    async def test_sync_timeout_has_no_partial(self, records: list, query: PageQuery) -> None:
        slow = InMemoryDataStore(records, delay=0.5)
        cache = MemoryCacheStore()
        with pytest.raises(PaginationTimeout):
            await TotalsEstimator(slow, cache).sync(query, max_time_ms=20)
        assert len(cache) == 0


class TestAsyncTotals:
    """Test token issue, polling and deduplication."""

    @pytest.mark.asyncio
    async def test_pending_then_ready(self, store: InMemoryDataStore, query: PageQuery) -> None:
        estimator = TotalsEstimator(store)
        first = await estimator.request(query)
        assert first.status == TotalsStatus.PENDING
        assert first.token == query.fingerprint

        final = await estimator.wait(first.token)
        assert final.status == TotalsStatus.READY
        assert final.total == 25

        polled = await estimator.poll(first.token)
        assert polled.total == 25

    @pytest.mark.asyncio
    async def test_single_flight(self, records: list, query: PageQuery) -> None:
        slow = InMemoryDataStore(records, delay=0.05)
        estimator = TotalsEstimator(slow)

        a, b = await asyncio.gather(estimator.request(query), estimator.request(query))
        assert a.token == b.token
        assert estimator.in_flight(a.token)

        final = await estimator.wait(a.token)
        assert final.total == 25
        assert slow.counts == 1

    @pytest.mark.asyncio
    async def test_cached_result_skips_count(
        self, store: InMemoryDataStore, query: PageQuery
    ) -> None:
        estimator = TotalsEstimator(store)
        token = (await estimator.request(query)).token
        await estimator.wait(token)
        again = await estimator.request(query)
        assert again.status == TotalsStatus.READY
        assert store.counts == 1

    @pytest.mark.asyncio
    async def test_recompute_after_expiry(self, store: InMemoryDataStore, query: PageQuery) -> None:
        estimator = TotalsEstimator(store)
        token = (await estimator.request(query, ttl_ms=1)).token
        await estimator.wait(token)
        await asyncio.sleep(0.01)
        assert (await estimator.poll(token)).status == TotalsStatus.PENDING
        await estimator.wait(token)
        assert store.counts == 2

    @pytest.mark.asyncio
    async def test_failed_count_is_cached(self, records: list, query: PageQuery) -> None:
        slow = InMemoryDataStore(records, delay=0.5)
        estimator = TotalsEstimator(slow)
        token = (await estimator.request(query, max_time_ms=10)).token
        final = await estimator.wait(token)
        assert final.status == TotalsStatus.FAILED
        assert final.error == "timeout"
        assert (await estimator.poll(token)).status == TotalsStatus.FAILED

    @pytest.mark.asyncio
    async def test_unknown_token(self, store: InMemoryDataStore) -> None:
        with pytest.raises(InvalidOptions):
            await TotalsEstimator(store).poll("nope")
