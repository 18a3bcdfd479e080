"""Page results and forward-only record streams."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any

from folio.core.query import PageQuery
from folio.paging.fetcher import Page, PageFetcher
from folio.paging.totals import TotalsRecord
from folio.store.base import Record


@dataclass
class PageResult:
    """One page plus navigation metadata."""

    items: list[Record] = field(default_factory=list)
    has_next: bool = False
    has_prev: bool = False
    start_cursor: str | None = None
    end_cursor: str | None = None
    current_page: int | None = None
    totals: TotalsRecord | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def from_page(cls, page: Page, has_prev: bool, current_page: int | None = None) -> PageResult:
        return cls(
            items=page.items,
            has_next=page.has_next,
            has_prev=has_prev,
            start_cursor=page.start_cursor,
            end_cursor=page.end_cursor,
            current_page=current_page,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "items": [dict(item) for item in self.items],
            "page_info": {
                "has_next": self.has_next,
                "has_prev": self.has_prev,
                "start_cursor": self.start_cursor,
                "end_cursor": self.end_cursor,
                "current_page": self.current_page,
            },
        }
        if self.totals is not None:
            data["totals"] = self.totals.to_dict()
        if self.meta is not None:
            data["meta"] = self.meta
        return data


class PageStream:
    """Lazy, forward-only, non-restartable record iterator.

    Records are pulled in ``batch_size`` chunks, one store call at a time,
    only when the consumer asks for more. Closing (or simply abandoning)
    the stream stops further fetches; nothing needs cleaning up.

    Usage:
        stream = await paginator.find_page(query, stream=True, batch_size=500)
        async for record in stream:
            ...
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        query: PageQuery,
        batch_size: int,
        after: str | None = None,
        max_time_ms: int | None = None,
    ):
        self._fetcher = fetcher
        self._query = query
        self._batch_size = batch_size
        self._cursor = after
        self._max_time_ms = max_time_ms
        self._buffer: deque[Record] = deque()
        self._exhausted = False
        self._closed = False
        self.batches = 0
        self.yielded = 0

    @property
    def end_cursor(self) -> str | None:
        """Cursor of the last record fetched so far."""
        return self._cursor

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> PageStream:
        return self

    async def __anext__(self) -> Record:
        while not self._buffer:
            if self._closed or self._exhausted:
                raise StopAsyncIteration
            page = await self._fetcher.fetch(
                self._query,
                after=self._cursor,
                limit=self._batch_size,
                max_time_ms=self._max_time_ms,
            )
            self.batches += 1
            self._buffer.extend(page.items)
            if page.end_cursor is not None:
                self._cursor = page.end_cursor
            if not page.has_next:
                self._exhausted = True
        self.yielded += 1
        return self._buffer.popleft()

    async def aclose(self) -> None:
        """Stop the stream; no further fetches are issued."""
        self._closed = True
        self._buffer.clear()

    async def __aenter__(self) -> PageStream:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
