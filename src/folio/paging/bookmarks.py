"""Cache-backed registry of (query fingerprint, page) -> cursor.

A bookmark for page N holds the end cursor of page N, i.e. the position
from which page N+1 is read. Bookmarks are namespaced by fingerprint so two
different queries never see each other's entries. The cache owns their
lifetime; an expired or evicted bookmark only makes a later jump longer.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from folio.cache.base import CacheStore
from folio.cache.keys import CacheKeys
from folio.core.query import PageQuery
from folio.errors import CacheUnavailable, InvalidPages
from folio.paging.fetcher import PageFetcher

logger = logging.getLogger(__name__)

DEFAULT_BOOKMARK_TTL_MS = 6 * 3600 * 1000
DEFAULT_MAX_BOOKMARK_PAGES = 10000


@dataclass
class PrewarmResult:
    warmed: int = 0
    failed: int = 0
    keys: list[str] = field(default_factory=list)


@dataclass
class BookmarkListing:
    count: int
    pages: list[int]
    keys: list[str]


@dataclass
class ClearResult:
    cleared: int
    keys_before: int
    pattern: str


def _is_page_number(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


class BookmarkStore:
    """Bookmark lifecycle: lookup, opportunistic writes, prewarm, list, clear."""

    def __init__(
        self,
        cache: CacheStore | None,
        fetcher: PageFetcher,
        keys: CacheKeys | None = None,
        ttl_ms: int = DEFAULT_BOOKMARK_TTL_MS,
        max_pages: int = DEFAULT_MAX_BOOKMARK_PAGES,
    ):
        self.cache = cache
        self.fetcher = fetcher
        self.keys = keys or CacheKeys()
        self.ttl_ms = ttl_ms
        self.max_pages = max_pages

    @property
    def enabled(self) -> bool:
        return self.cache is not None

    def _require_cache(self) -> CacheStore:
        if self.cache is None:
            raise CacheUnavailable()
        return self.cache

    # -------------------------------------------------------------------------
    # Single-entry access (no-ops without a cache)
    # -------------------------------------------------------------------------

    async def get(self, query: PageQuery, page: int) -> str | None:
        if self.cache is None:
            return None
        cursor = await self.cache.get(self.keys.bookmark(query.fingerprint, page))
        if isinstance(cursor, str) and cursor:
            return cursor
        return None

    async def put(self, query: PageQuery, page: int, cursor: str | None) -> str | None:
        """Store the end cursor of ``page``; returns the key written, if any."""
        if self.cache is None or not cursor or page > self.max_pages:
            return None
        key = self.keys.bookmark(query.fingerprint, page)
        await self.cache.set(key, cursor, self.ttl_ms)
        return key

    async def cached_pages(self, query: PageQuery) -> list[int]:
        if self.cache is None:
            return []
        found = await self.cache.keys(self.keys.bookmark_pattern(query.fingerprint))
        return self._pages_of(found)

    async def nearest(self, query: PageQuery, max_page: int) -> tuple[int, str] | None:
        """Largest cached bookmark with page <= ``max_page``."""
        if max_page < 1:
            return None
        for page in sorted((p for p in await self.cached_pages(query) if p <= max_page), reverse=True):
            cursor = await self.get(query, page)
            if cursor is not None:
                return page, cursor
        return None

    def _pages_of(self, keys: Iterable[str]) -> list[int]:
        pages = []
        for key in keys:
            parsed = self.keys.parse_bookmark(key)
            if parsed is not None:
                pages.append(parsed[1])
        return sorted(pages)

    # -------------------------------------------------------------------------
    # Lifecycle API
    # -------------------------------------------------------------------------

    async def prewarm(
        self, query: PageQuery, pages: list[Any], max_time_ms: int | None = None
    ) -> PrewarmResult:
        """Cache bookmarks for ``pages`` in one forward walk.

        Every page visited on the way is cached, not only the requested
        ones. Requested pages past the end of the data are counted as
        failed, as are non-positive or non-integer entries. ``max_time_ms``
        bounds each fetch of the walk.

        Raises:
            CacheUnavailable: if no cache is configured
            InvalidPages: if ``pages`` is empty
        """
        self._require_cache()
        if not pages:
            raise InvalidPages()

        result = PrewarmResult()
        targets: list[int] = []
        for page in pages:
            if _is_page_number(page):
                targets.append(page)
            else:
                result.failed += 1
                logger.warning("Skipping invalid page number", extra={"page": repr(page)})
        targets = sorted(set(targets))
        if not targets:
            return result

        current_page = 0
        cursor: str | None = None
        has_more = True
        anchor = await self.nearest(query, targets[0])
        if anchor is not None:
            current_page, cursor = anchor

        for target in targets:
            while current_page < target and has_more:
                page = await self.fetcher.fetch(query, after=cursor, max_time_ms=max_time_ms)
                if page.is_empty:
                    has_more = False
                    break
                current_page += 1
                cursor = page.end_cursor
                has_more = page.has_next
                await self.put(query, current_page, cursor)

            if current_page == target and target <= self.max_pages:
                result.warmed += 1
                result.keys.append(self.keys.bookmark(query.fingerprint, target))
            else:
                result.failed += 1
                logger.warning("Page beyond end of data, not warmed", extra={"page": target})

        logger.info(
            "Prewarmed bookmarks",
            extra={"warmed": result.warmed, "failed": result.failed, "walked_to": current_page},
        )
        return result

    async def list(self, query: PageQuery | None = None) -> BookmarkListing:
        """List cached bookmarks for one query, or system-wide."""
        cache = self._require_cache()
        pattern = self.keys.bookmark_pattern(query.fingerprint if query else None)
        found = await cache.keys(pattern)
        pages = self._pages_of(found)
        return BookmarkListing(count=len(pages), pages=pages, keys=found)

    async def clear(self, query: PageQuery | None = None) -> ClearResult:
        """Delete bookmarks for one query, or all bookmarks."""
        cache = self._require_cache()
        pattern = self.keys.bookmark_pattern(query.fingerprint if query else None)
        keys_before = len(await cache.keys(pattern))
        cleared = await cache.delete_pattern(pattern)
        logger.info("Cleared bookmarks", extra={"cleared": cleared, "pattern": pattern})
        return ClearResult(cleared=cleared, keys_before=keys_before, pattern=pattern)
