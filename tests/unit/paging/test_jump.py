"""Tests for jump resolution."""

import pytest

from folio.cache.memory import MemoryCacheStore
from folio.core.query import PageQuery
from folio.errors import JumpTooFar, PaginationTimeout, SkipTooLarge
from folio.paging.bookmarks import BookmarkStore
from folio.paging.fetcher import PageFetcher
from folio.paging.jump import BookmarkStrategy, JumpResolver, OffsetStrategy
from folio.store.memory import InMemoryDataStore


@pytest.fixture
def query() -> PageQuery:
    return PageQuery.create(sort={"id": 1}, limit=5)


@pytest.fixture
def resolver(store: InMemoryDataStore, cache: MemoryCacheStore) -> JumpResolver:
    fetcher = PageFetcher(store)
    return JumpResolver(fetcher, BookmarkStore(cache, fetcher))


class TestOffsetStrategy:
    """Test skip computation and its guard."""

    @pytest.mark.asyncio
    async def test_skip(self, resolver: JumpResolver, store: InMemoryDataStore, query: PageQuery) -> None:
        start = await resolver.resolve(4, query, OffsetStrategy(max_skip=100))
        assert start.skip == 15
        assert start.after is None
        assert store.reads == 0

    @pytest.mark.asyncio
    async def test_skip_too_large(self, resolver: JumpResolver, query: PageQuery) -> None:
        with pytest.raises(SkipTooLarge) as exc_info:
            await resolver.resolve(5, query, OffsetStrategy(max_skip=19))
        assert exc_info.value.skip == 20


class TestBookmarkStrategy:
    """Test bookmark walks."""

    @pytest.mark.asyncio
    async def test_first_page_is_free(
        self, resolver: JumpResolver, store: InMemoryDataStore, query: PageQuery
    ) -> None:
        start = await resolver.resolve(1, query, BookmarkStrategy())
        assert start.after is None
        assert start.hops == 0
        assert store.reads == 0

    @pytest.mark.asyncio
    async def test_walk_without_bookmark(
        self, resolver: JumpResolver, store: InMemoryDataStore, query: PageQuery
    ) -> None:
        start = await resolver.resolve(4, query, BookmarkStrategy(step=2, max_hops=5))
        assert start.hops == 3
        assert store.reads == 3
        assert await resolver.bookmarks.cached_pages(query) == [1, 2]

    @pytest.mark.asyncio
    async def test_hops_from_bookmark(
        self, resolver: JumpResolver, store: InMemoryDataStore, query: PageQuery
    ) -> None:
        await resolver.bookmarks.prewarm(query, [3])
        store.reset_counters()
        start = await resolver.resolve(7, query, BookmarkStrategy(step=100, max_hops=10))
        assert start.hops == 4
        # walk pages 4..6; the caller reads page 7
        assert store.reads == 3

    @pytest.mark.asyncio
    async def test_too_far(
        self, resolver: JumpResolver, store: InMemoryDataStore, query: PageQuery
    ) -> None:
        with pytest.raises(JumpTooFar) as exc_info:
            await resolver.resolve(8, query, BookmarkStrategy(max_hops=5))
        assert exc_info.value.hops == 7
        assert store.reads == 0

    @pytest.mark.asyncio
    async def test_beyond_end(self, resolver: JumpResolver, query: PageQuery) -> None:
        start = await resolver.resolve(12, query, BookmarkStrategy(max_hops=20))
        assert start.exhausted is True

    @pytest.mark.asyncio
    async def test_no_cache_on_walk(self, store: InMemoryDataStore, cache: MemoryCacheStore, query: PageQuery) -> None:
        fetcher = PageFetcher(store)
        resolver = JumpResolver(fetcher, BookmarkStore(cache, fetcher), cache_on_walk=False)
        await resolver.resolve(4, query, BookmarkStrategy(step=1))
        assert len(cache) == 0


class TestHopDeadline:
    """Test that every hop carries the caller's deadline."""

    @pytest.mark.asyncio
    async def test_first_hop_times_out(
        self, records: list, cache: MemoryCacheStore, query: PageQuery
    ) -> None:
        slow = InMemoryDataStore(records, delay=0.3)
        fetcher = PageFetcher(slow, max_time_ms=5000)
        resolver = JumpResolver(fetcher, BookmarkStore(cache, fetcher))
        with pytest.raises(PaginationTimeout):
            await resolver.resolve(5, query, BookmarkStrategy(max_hops=5), max_time_ms=20)
        assert slow.reads == 1
