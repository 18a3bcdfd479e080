"""In-process cache store with lazy TTL expiry."""

from __future__ import annotations

import fnmatch
import time
from typing import Any


class MemoryCacheStore:
    """Dictionary-backed CacheStore.

    Entries expire lazily: an expired entry is dropped the next time it is
    read or listed.
    """

    def __init__(self, clock: Any = time.monotonic) -> None:
        self._data: dict[str, tuple[Any, float | None]] = {}
        self._clock = clock

    def _alive(self, key: str) -> bool:
        entry = self._data.get(key)
        if entry is None:
            return False
        _, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return False
        return True

    async def get(self, key: str) -> Any | None:
        if not self._alive(key):
            return None
        return self._data[key][0]

    async def set(self, key: str, value: Any, ttl_ms: int) -> None:
        expires_at = self._clock() + ttl_ms / 1000 if ttl_ms and ttl_ms > 0 else None
        self._data[key] = (value, expires_at)

    async def keys(self, pattern: str) -> list[str]:
        return sorted(
            k for k in list(self._data) if fnmatch.fnmatchcase(k, pattern) and self._alive(k)
        )

    async def delete_pattern(self, pattern: str) -> int:
        matched = await self.keys(pattern)
        for key in matched:
            del self._data[key]
        return len(matched)

    def __len__(self) -> int:
        return sum(1 for k in list(self._data) if self._alive(k))
