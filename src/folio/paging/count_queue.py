"""Concurrency limiter for count computations.

Counts are the most expensive reads the engine issues. The queue caps how
many run at once, how many may wait, and how long a waiter stays in line
before giving up.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass
from typing import Any, TypeVar

from folio.errors import CountQueueFull, PaginationTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CountQueueStats:
    executed: int = 0
    queued: int = 0
    waited: int = 0
    timeout: int = 0
    rejected: int = 0
    avg_wait_ms: float = 0.0
    max_wait_ms: float = 0.0


class CountQueue:
    """Semaphore-gated executor with a bounded waiting line."""

    def __init__(self, concurrency: int = 8, max_queue_size: int = 10000, timeout_ms: int = 60000):
        self.concurrency = concurrency
        self.max_queue_size = max_queue_size
        self.timeout_ms = timeout_ms
        self._semaphore = asyncio.Semaphore(concurrency)
        self._running = 0
        self._waiting = 0
        self._stats = CountQueueStats()

    async def execute(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Run ``fn`` once a slot is free.

        Raises:
            CountQueueFull: if the waiting line is already at capacity
            PaginationTimeout: if no slot frees up within ``timeout_ms``
        """
        if self._semaphore.locked():
            if self._waiting >= self.max_queue_size:
                self._stats.rejected += 1
                raise CountQueueFull(self.max_queue_size)
            self._stats.queued += 1
            self._waiting += 1
            started = time.perf_counter()
            try:
                await asyncio.wait_for(self._semaphore.acquire(), timeout=self.timeout_ms / 1000)
            except asyncio.TimeoutError as exc:
                self._stats.timeout += 1
                logger.warning("Count queue wait timed out", extra={"timeout_ms": self.timeout_ms})
                raise PaginationTimeout("count_queue_wait", self.timeout_ms) from exc
            finally:
                self._waiting -= 1
            self._record_wait((time.perf_counter() - started) * 1000)
        else:
            await self._semaphore.acquire()

        self._running += 1
        self._stats.executed += 1
        try:
            return await fn()
        finally:
            self._running -= 1
            self._semaphore.release()

    def _record_wait(self, wait_ms: float) -> None:
        self._stats.waited += 1
        self._stats.avg_wait_ms += (wait_ms - self._stats.avg_wait_ms) / self._stats.waited
        self._stats.max_wait_ms = max(self._stats.max_wait_ms, wait_ms)

    def stats(self) -> dict[str, Any]:
        return {
            **asdict(self._stats),
            "running": self._running,
            "waiting": self._waiting,
            "concurrency": self.concurrency,
            "max_queue_size": self.max_queue_size,
        }

    def reset_stats(self) -> None:
        self._stats = CountQueueStats()
