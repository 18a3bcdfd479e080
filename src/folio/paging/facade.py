"""Single entry point for paginated reads.

Each find_page call moves through:

    Received -> Validate -> ResolveStart -> Fetch -> [ComputeTotals] -> Done | Failed

Validation happens before any I/O and fixes the PaginationMode:

- STREAM: lazy forward-only record iterator (no jumps, no totals)
- CURSOR: one fetch after the supplied cursor (or from the start)
- JUMP:   JumpResolver finds where ``page`` starts, then one fetch

Totals, when requested, run concurrently with the page fetch and are
merged into the result.

Example:
    paginator = Paginator(InMemoryDataStore(rows), cache=MemoryCacheStore())
    query = paginator.query(sort={"created_at": -1}, limit=20)

    first = await paginator.find_page(query)
    second = await paginator.find_page(query, after=first.end_cursor)
    tenth = await paginator.find_page(query, page=10, jump={"maxHops": 20})
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Mapping
from typing import Any

from folio.cache.base import CacheStore
from folio.cache.keys import CacheKeys
from folio.config import Settings
from folio.config import settings as default_settings
from folio.core.query import PageQuery, SortSpec
from folio.errors import InvalidOptions, StreamNoJump, StreamNoTotals
from folio.observability.logging import LogContext
from folio.paging.bookmarks import BookmarkListing, BookmarkStore, ClearResult, PrewarmResult
from folio.paging.count_queue import CountQueue
from folio.paging.fetcher import PageFetcher
from folio.paging.jump import (
    BookmarkStrategy,
    JumpResolver,
    JumpStrategy,
    OffsetStrategy,
    ResolvedStart,
)
from folio.paging.options import (
    FindPageOptions,
    PaginationMode,
    TotalsMode,
    TotalsOptions,
    parse_options,
)
from folio.paging.results import PageResult, PageStream
from folio.paging.totals import TotalsEstimator, TotalsRecord
from folio.store.base import DataStore

logger = logging.getLogger(__name__)


async def _gather_or_cancel(*aws: Awaitable[Any]) -> list[Any]:
    """Like asyncio.gather, but a failure cancels and reaps the siblings."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class Paginator:
    """Composes fetcher, bookmarks, jump resolution and totals."""

    def __init__(
        self,
        store: DataStore,
        cache: CacheStore | None = None,
        settings: Settings | None = None,
        count_queue: CountQueue | None = None,
    ):
        self.settings = settings or default_settings
        cfg = self.settings
        self.store = store
        self.cache = cache
        self.keys = CacheKeys(cfg.cache_prefix)
        self.fetcher = PageFetcher(store, max_time_ms=cfg.default_max_time_ms)
        self.bookmarks = BookmarkStore(
            cache,
            self.fetcher,
            keys=self.keys,
            ttl_ms=cfg.bookmark_ttl_ms,
            max_pages=cfg.bookmark_max_pages,
        )
        self.jumps = JumpResolver(
            self.fetcher, self.bookmarks, cache_on_walk=cfg.bookmark_cache_on_walk
        )
        self.totals = TotalsEstimator(
            store,
            cache,
            keys=self.keys,
            count_queue=count_queue
            or CountQueue(
                concurrency=cfg.count_queue_concurrency,
                max_queue_size=cfg.count_queue_max_size,
                timeout_ms=cfg.count_queue_timeout_ms,
            ),
            ttl_ms=cfg.totals_ttl_ms,
            max_time_ms=cfg.totals_max_time_ms,
        )

    def query(
        self,
        filter: Mapping[str, Any] | None = None,
        sort: SortSpec | None = None,
        limit: int | None = None,
    ) -> PageQuery:
        """Build a PageQuery using the configured tie-breaker and default limit."""
        return PageQuery.create(
            filter=filter,
            sort=sort,
            limit=limit if limit is not None else self.settings.default_limit,
            tie_breaker=self.settings.tie_breaker_field,
        )

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self, query: PageQuery, options: FindPageOptions) -> PaginationMode:
        """Reject invalid option combinations and pick the mode.

        Performs no I/O.
        """
        if query.limit > self.settings.max_limit:
            raise InvalidOptions(
                f"limit must be between 1 and {self.settings.max_limit}",
                [{"path": ["limit"], "limit": query.limit}],
            )

        if options.stream:
            if options.page is not None and options.page > 1:
                raise StreamNoJump()
            if options.totals_mode != TotalsMode.NONE:
                raise StreamNoTotals()

        if options.after is not None and options.page is not None:
            raise InvalidOptions(
                "'page' and 'after' are mutually exclusive", [{"path": ["page"]}]
            )
        if options.jump is not None and options.offset_enabled:
            raise InvalidOptions(
                "'jump' and 'offsetJump' cannot both be active", [{"path": ["jump"]}]
            )

        if options.after is not None:
            self.fetcher.codec_for(query).decode(options.after)

        if options.stream:
            return PaginationMode.STREAM
        if options.page is not None:
            return PaginationMode.JUMP
        return PaginationMode.CURSOR

    def strategy_for(self, options: FindPageOptions) -> JumpStrategy:
        cfg = self.settings
        if options.jump is not None:
            return BookmarkStrategy(
                step=options.jump.step or cfg.bookmark_step,
                max_hops=(
                    options.jump.max_hops
                    if options.jump.max_hops is not None
                    else cfg.bookmark_max_hops
                ),
            )
        max_skip = options.offset_jump.max_skip if options.offset_jump else None
        return OffsetStrategy(max_skip=max_skip if max_skip is not None else cfg.offset_max_skip)

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    async def find_page(
        self,
        query: PageQuery,
        options: FindPageOptions | Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> PageResult | PageStream:
        """Read one page, or open a stream.

        Options may be passed as a FindPageOptions, a mapping, keyword
        arguments, or a mix (keywords win).

        Raises:
            InvalidOptions, StreamNoJump, StreamNoTotals, InvalidCursor:
                before any I/O
            JumpTooFar, SkipTooLarge: jump guard limits
            PaginationTimeout: a store call exceeded its deadline
        """
        started = time.perf_counter()
        opts = parse_options(options, **kwargs)
        mode = self.validate(query, opts)

        with LogContext(fingerprint=query.fingerprint):
            if mode == PaginationMode.STREAM:
                return PageStream(
                    self.fetcher,
                    query,
                    batch_size=opts.batch_size or self.settings.stream_batch_size,
                    after=opts.after,
                    max_time_ms=opts.max_time_ms,
                )

            if mode == PaginationMode.JUMP:
                page_coro: Awaitable[tuple[PageResult, int]] = self._jump_page(query, opts)
            else:
                page_coro = self._cursor_page(query, opts)

            if opts.totals_mode == TotalsMode.NONE:
                result, hops = await page_coro
            else:
                (result, hops), totals = await _gather_or_cancel(
                    page_coro, self._totals(query, opts)
                )
                result.totals = totals

            if opts.meta:
                result.meta = {
                    "op": "find_page",
                    "mode": mode.value,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 3),
                    "hops": hops,
                }
            return result

    async def _cursor_page(
        self, query: PageQuery, opts: FindPageOptions
    ) -> tuple[PageResult, int]:
        page = await self.fetcher.fetch(query, after=opts.after, max_time_ms=opts.max_time_ms)
        return PageResult.from_page(page, has_prev=opts.after is not None), 0

    async def _jump_page(self, query: PageQuery, opts: FindPageOptions) -> tuple[PageResult, int]:
        target = opts.page or 1
        strategy = self.strategy_for(opts)
        resolved: ResolvedStart = await self.jumps.resolve(
            target, query, strategy, max_time_ms=opts.max_time_ms
        )

        if resolved.exhausted:
            logger.debug("Jump target beyond end of data", extra={"page": target})
            return PageResult(has_prev=target > 1, current_page=target), resolved.hops

        page = await self.fetcher.fetch(
            query, after=resolved.after, skip=resolved.skip, max_time_ms=opts.max_time_ms
        )
        if isinstance(strategy, OffsetStrategy):
            await self.bookmarks.put(query, target, page.end_cursor)
        elif self.jumps.cache_on_walk and target % strategy.step == 0:
            await self.bookmarks.put(query, target, page.end_cursor)
        return PageResult.from_page(page, has_prev=target > 1, current_page=target), resolved.hops

    async def _totals(self, query: PageQuery, opts: FindPageOptions) -> TotalsRecord:
        totals = opts.totals or TotalsOptions()
        if totals.mode == TotalsMode.SYNC:
            return await self.totals.sync(
                query, max_time_ms=totals.max_time_ms, ttl_ms=totals.ttl_ms
            )
        return await self.totals.request(
            query, ttl_ms=totals.ttl_ms, max_time_ms=totals.max_time_ms
        )

    # -------------------------------------------------------------------------
    # Bookmark lifecycle and totals polling
    # -------------------------------------------------------------------------

    async def prewarm_bookmarks(
        self, query: PageQuery, pages: list[Any], max_time_ms: int | None = None
    ) -> PrewarmResult:
        with LogContext(fingerprint=query.fingerprint):
            return await self.bookmarks.prewarm(query, pages, max_time_ms=max_time_ms)

    async def list_bookmarks(self, query: PageQuery | None = None) -> BookmarkListing:
        return await self.bookmarks.list(query)

    async def clear_bookmarks(self, query: PageQuery | None = None) -> ClearResult:
        return await self.bookmarks.clear(query)

    async def poll_totals(self, token: str) -> TotalsRecord:
        return await self.totals.poll(token)
