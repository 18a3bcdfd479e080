"""Single bounded range read: the only I/O primitive of the engine.

Every higher component (jump walks, prewarm, streams) is a sequence of
PageFetcher.fetch calls. A fetch asks the store for ``limit + 1`` records
strictly after the decoded cursor, trims the probe record, and reports
``has_next`` from its presence.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import TypeVar

from folio.core.cursor import CursorCodec
from folio.core.query import PageQuery
from folio.errors import PaginationTimeout
from folio.observability.metrics import get_metrics
from folio.store.base import DataStore, RangeRead, Record

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_TIME_MS = 2000


async def run_bounded(awaitable: Awaitable[T], operation: str, max_time_ms: int) -> T:
    """Await a store call under a deadline.

    Raises:
        PaginationTimeout: if the deadline passes; no partial result escapes.
    """
    metrics = get_metrics()
    started = time.perf_counter()
    try:
        return await asyncio.wait_for(awaitable, timeout=max_time_ms / 1000)
    except asyncio.TimeoutError as exc:
        logger.warning("Store call timed out", extra={"operation": operation, "max_time_ms": max_time_ms})
        raise PaginationTimeout(operation, max_time_ms) from exc
    finally:
        metrics.store_reads_total.labels(kind=operation).inc()
        metrics.store_read_duration_seconds.labels(kind=operation).observe(
            time.perf_counter() - started
        )


@dataclass
class Page:
    """One fetched page."""

    items: list[Record] = field(default_factory=list)
    has_next: bool = False
    start_cursor: str | None = None
    end_cursor: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.items


class PageFetcher:
    """Executes bounded keyset reads against a DataStore."""

    def __init__(self, store: DataStore, max_time_ms: int = DEFAULT_MAX_TIME_MS):
        self.store = store
        self.max_time_ms = max_time_ms

    def codec_for(self, query: PageQuery) -> CursorCodec:
        return CursorCodec(query.sort)

    async def fetch(
        self,
        query: PageQuery,
        after: str | None = None,
        limit: int | None = None,
        *,
        skip: int = 0,
        max_time_ms: int | None = None,
    ) -> Page:
        """Fetch up to ``limit`` records following ``after``.

        Args:
            query: Filter, sort and default page size
            after: Cursor of the last record already seen, or None for the start
            limit: Page size override (stream batches use this)
            skip: Records to skip before the page (offset jumps only)
            max_time_ms: Deadline override for this read

        Raises:
            InvalidCursor: if ``after`` does not decode under the query's sort
            PaginationTimeout: if the store does not answer in time
        """
        codec = self.codec_for(query)
        after_key = codec.decode(after) if after is not None else None
        size = limit if limit is not None else query.limit
        budget = max_time_ms or self.max_time_ms

        read = RangeRead(
            filter=query.filter,
            sort=query.sort,
            limit=size + 1,
            after=after_key,
            skip=skip,
            max_time_ms=budget,
        )
        rows = list(await run_bounded(self.store.find(read), "find", budget))

        has_next = len(rows) > size
        items = rows[:size]
        if not items:
            return Page(items=[], has_next=False)

        logger.debug(
            "Fetched page",
            extra={"items": len(items), "has_next": has_next, "skip": skip, "after": after is not None},
        )
        return Page(
            items=items,
            has_next=has_next,
            start_cursor=codec.encode(query.sort_key(items[0])),
            end_cursor=codec.encode(query.sort_key(items[-1])),
        )
