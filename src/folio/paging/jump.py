"""Resolve where an arbitrary page starts.

Two strategies, exactly one per call:

Bookmark strategy (keyset walk):
    Find the largest cached bookmark B <= target-1 and walk forward one
    page at a time until the cursor that starts ``target`` is known. With
    no bookmark the walk starts at page 1. ``hops = target - B`` (or
    ``target - 1`` without a bookmark) and must not exceed ``max_hops``.
    Hops are sequential; each depends on the previous end cursor.

Offset strategy (skip):
    ``skip = (target - 1) * limit`` must not exceed ``max_skip``. The page
    is then read with a single skip-based query.

Bookmarks are written during a walk for page 1 and every ``step``-th page
so later jumps start closer. Caching is an optimization only; a jump's
result does not depend on it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from folio.core.query import PageQuery
from folio.errors import JumpTooFar, SkipTooLarge
from folio.observability.metrics import get_metrics
from folio.paging.bookmarks import BookmarkStore
from folio.paging.fetcher import PageFetcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookmarkStrategy:
    step: int = 10
    max_hops: int = 20


@dataclass(frozen=True)
class OffsetStrategy:
    max_skip: int = 50000


JumpStrategy = Union[BookmarkStrategy, OffsetStrategy]


@dataclass
class ResolvedStart:
    """Where the target page starts.

    ``after`` is the cursor to read the target page from (None for the
    start of the result set) and ``skip`` is non-zero only for offset jumps.
    ``exhausted`` means the data ended before the target page.
    """

    page: int
    after: str | None = None
    skip: int = 0
    hops: int = 0
    exhausted: bool = False


class JumpResolver:
    """Chooses and runs a jump strategy."""

    def __init__(
        self,
        fetcher: PageFetcher,
        bookmarks: BookmarkStore,
        cache_on_walk: bool = True,
    ):
        self.fetcher = fetcher
        self.bookmarks = bookmarks
        self.cache_on_walk = cache_on_walk

    async def resolve(
        self,
        target_page: int,
        query: PageQuery,
        strategy: JumpStrategy,
        max_time_ms: int | None = None,
    ) -> ResolvedStart:
        """Return the start position of ``target_page``.

        ``max_time_ms`` bounds every hop fetch, not the walk as a whole.

        Raises:
            JumpTooFar: bookmark walk would exceed ``max_hops``
            SkipTooLarge: offset would exceed ``max_skip``
        """
        if isinstance(strategy, OffsetStrategy):
            return self._resolve_offset(target_page, query, strategy)
        return await self._resolve_bookmark(target_page, query, strategy, max_time_ms)

    def _resolve_offset(
        self, target_page: int, query: PageQuery, strategy: OffsetStrategy
    ) -> ResolvedStart:
        skip = (target_page - 1) * query.limit
        if skip > strategy.max_skip:
            raise SkipTooLarge(skip, strategy.max_skip)
        return ResolvedStart(page=target_page, skip=skip)

    def _should_cache(self, page: int, step: int) -> bool:
        return self.cache_on_walk and (page == 1 or page % step == 0)

    async def _resolve_bookmark(
        self,
        target_page: int,
        query: PageQuery,
        strategy: BookmarkStrategy,
        max_time_ms: int | None = None,
    ) -> ResolvedStart:
        if target_page <= 1:
            return ResolvedStart(page=target_page)

        metrics = get_metrics()
        anchor = await self.bookmarks.nearest(query, target_page - 1)
        if anchor is not None:
            base_page, cursor = anchor
            hops = target_page - base_page
            metrics.bookmark_lookups_total.labels(result="hit").inc()
        else:
            base_page, cursor = 0, None
            hops = target_page - 1
            metrics.bookmark_lookups_total.labels(result="miss").inc()

        if hops > strategy.max_hops:
            raise JumpTooFar(hops, strategy.max_hops)

        # Walk pages base_page+1 .. target_page-1; the caller reads target_page
        current = base_page
        after: str | None = cursor
        while current < target_page - 1:
            page = await self.fetcher.fetch(query, after=after, max_time_ms=max_time_ms)
            if page.is_empty:
                return ResolvedStart(page=target_page, after=after, hops=hops, exhausted=True)
            current += 1
            after = page.end_cursor
            if self._should_cache(current, strategy.step):
                await self.bookmarks.put(query, current, after)
            if not page.has_next:
                return ResolvedStart(page=target_page, after=after, hops=hops, exhausted=True)

        metrics.jump_hops_total.labels(strategy="bookmark").inc(hops)
        logger.debug(
            "Resolved jump via bookmarks",
            extra={"target_page": target_page, "base_page": base_page, "hops": hops},
        )
        return ResolvedStart(page=target_page, after=after, hops=hops)
