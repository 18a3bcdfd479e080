"""Total-count computation, decoupled from page reads.

Sync mode counts inline under a deadline; a timeout raises rather than
returning a partial number.

Async mode returns immediately with a token (the query fingerprint). At
most one count per fingerprint is in flight in this process: concurrent
callers find the running task in ``_inflight`` and share it. The finished
record is cached for ``ttl_ms``; polling after expiry reports ``pending``
and starts a new count only if none is running.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from folio.cache.base import CacheStore
from folio.cache.keys import CacheKeys
from folio.cache.memory import MemoryCacheStore
from folio.core.query import PageQuery
from folio.errors import InvalidOptions, PaginationTimeout
from folio.observability.metrics import get_metrics
from folio.paging.count_queue import CountQueue
from folio.paging.fetcher import run_bounded
from folio.store.base import DataStore

logger = logging.getLogger(__name__)

DEFAULT_TOTALS_TTL_MS = 10 * 60 * 1000
DEFAULT_TOTALS_MAX_TIME_MS = 2000
MAX_TRACKED_TOKENS = 10000


class TotalsStatus(str, Enum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


@dataclass
class TotalsRecord:
    """Outcome of a total-count request."""

    token: str
    fingerprint: str
    status: TotalsStatus
    mode: str = "async"
    total: int | None = None
    total_pages: int | None = None
    computed_at: str | None = None
    ttl_ms: int | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "token": self.token,
            "fingerprint": self.fingerprint,
            "status": self.status.value,
            "mode": self.mode,
            "total": self.total,
            "total_pages": self.total_pages,
            "computed_at": self.computed_at,
            "ttl_ms": self.ttl_ms,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TotalsRecord:
        return cls(
            token=data["token"],
            fingerprint=data["fingerprint"],
            status=TotalsStatus(data["status"]),
            mode=data.get("mode", "async"),
            total=data.get("total"),
            total_pages=data.get("total_pages"),
            computed_at=data.get("computed_at"),
            ttl_ms=data.get("ttl_ms"),
            error=data.get("error"),
        )


@dataclass(frozen=True)
class _TokenRequest:
    query: PageQuery
    ttl_ms: int
    max_time_ms: int


def total_pages_for(total: int, limit: int) -> int:
    return math.ceil(total / max(1, limit))


class TotalsEstimator:
    """Sync and single-flight async total counting with TTL caching."""

    def __init__(
        self,
        store: DataStore,
        cache: CacheStore | None = None,
        keys: CacheKeys | None = None,
        count_queue: CountQueue | None = None,
        ttl_ms: int = DEFAULT_TOTALS_TTL_MS,
        max_time_ms: int = DEFAULT_TOTALS_MAX_TIME_MS,
    ):
        self.store = store
        self.cache: CacheStore = cache if cache is not None else MemoryCacheStore()
        self.keys = keys or CacheKeys()
        self.count_queue = count_queue or CountQueue()
        self.ttl_ms = ttl_ms
        self.max_time_ms = max_time_ms
        self._inflight: dict[str, asyncio.Task[TotalsRecord]] = {}
        self._requests: OrderedDict[str, _TokenRequest] = OrderedDict()

    async def _count(self, query: PageQuery, max_time_ms: int) -> int:
        return await self.count_queue.execute(
            lambda: run_bounded(
                self.store.count(query.filter, max_time_ms=max_time_ms), "count", max_time_ms
            )
        )

    def _ready(self, query: PageQuery, total: int, mode: str, ttl_ms: int) -> TotalsRecord:
        return TotalsRecord(
            token=query.fingerprint,
            fingerprint=query.fingerprint,
            status=TotalsStatus.READY,
            mode=mode,
            total=total,
            total_pages=total_pages_for(total, query.limit),
            computed_at=datetime.now(timezone.utc).isoformat(),
            ttl_ms=ttl_ms,
        )

    # -------------------------------------------------------------------------
    # Sync
    # -------------------------------------------------------------------------

    async def sync(
        self, query: PageQuery, max_time_ms: int | None = None, ttl_ms: int | None = None
    ) -> TotalsRecord:
        """Exact count bounded by ``max_time_ms``.

        Raises:
            PaginationTimeout: if the count does not finish in time
        """
        budget = max_time_ms or self.max_time_ms
        ttl = ttl_ms or self.ttl_ms
        total = await self._count(query, budget)
        record = self._ready(query, total, "sync", ttl)
        await self.cache.set(self.keys.totals(query.fingerprint), record.to_dict(), ttl)
        get_metrics().totals_computations_total.labels(status="ready").inc()
        return record

    # -------------------------------------------------------------------------
    # Async (single-flight)
    # -------------------------------------------------------------------------

    async def request(
        self, query: PageQuery, ttl_ms: int | None = None, max_time_ms: int | None = None
    ) -> TotalsRecord:
        """Return the cached record or start a background count.

        Never waits for the count itself.
        """
        token = query.fingerprint
        request = _TokenRequest(
            query=query,
            ttl_ms=ttl_ms or self.ttl_ms,
            max_time_ms=max_time_ms or self.max_time_ms,
        )
        self._remember(token, request)

        cached = await self.cache.get(self.keys.totals(token))
        if cached:
            return TotalsRecord.from_dict(cached)

        self._ensure_computation(request)
        return self._pending(token)

    async def poll(self, token: str) -> TotalsRecord:
        """Current state of an async totals token.

        Raises:
            InvalidOptions: if the token was never issued by this estimator
        """
        cached = await self.cache.get(self.keys.totals(token))
        if cached:
            return TotalsRecord.from_dict(cached)

        request = self._requests.get(token)
        if request is None:
            raise InvalidOptions(f"Unknown totals token: {token}", [{"path": ["token"]}])
        self._ensure_computation(request)
        return self._pending(token)

    async def wait(self, token: str) -> TotalsRecord:
        """Wait for the in-flight count of ``token`` (or poll if none)."""
        task = self._inflight.get(token)
        if task is not None:
            return await asyncio.shield(task)
        return await self.poll(token)

    def in_flight(self, token: str) -> bool:
        task = self._inflight.get(token)
        return task is not None and not task.done()

    def _pending(self, token: str) -> TotalsRecord:
        return TotalsRecord(token=token, fingerprint=token, status=TotalsStatus.PENDING)

    def _remember(self, token: str, request: _TokenRequest) -> None:
        self._requests[token] = request
        self._requests.move_to_end(token)
        while len(self._requests) > MAX_TRACKED_TOKENS:
            self._requests.popitem(last=False)

    def _ensure_computation(self, request: _TokenRequest) -> asyncio.Task[TotalsRecord]:
        # No await between lookup and insert: the check-and-set is atomic on the loop
        token = request.query.fingerprint
        task = self._inflight.get(token)
        if task is not None and not task.done():
            return task

        task = asyncio.create_task(self._compute_and_store(request))
        self._inflight[token] = task

        def _done(finished: asyncio.Task[TotalsRecord]) -> None:
            if self._inflight.get(token) is finished:
                del self._inflight[token]

        task.add_done_callback(_done)
        return task

    async def _compute_and_store(self, request: _TokenRequest) -> TotalsRecord:
        query = request.query
        metrics = get_metrics()
        try:
            total = await self._count(query, request.max_time_ms)
            record = self._ready(query, total, "async", request.ttl_ms)
            metrics.totals_computations_total.labels(status="ready").inc()
        except Exception as exc:
            # Failures are cached too so a broken count is not re-run on every poll
            logger.warning(
                "Async total count failed",
                extra={"fingerprint": query.fingerprint, "reason": str(exc)},
            )
            record = TotalsRecord(
                token=query.fingerprint,
                fingerprint=query.fingerprint,
                status=TotalsStatus.FAILED,
                computed_at=datetime.now(timezone.utc).isoformat(),
                ttl_ms=request.ttl_ms,
                error="timeout" if isinstance(exc, PaginationTimeout) else "count_failed",
            )
            metrics.totals_computations_total.labels(status="failed").inc()
        await self.cache.set(self.keys.totals(query.fingerprint), record.to_dict(), request.ttl_ms)
        return record
