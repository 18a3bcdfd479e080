"""Redis cache store for bookmarks and totals records.

Uses the redis-py async client. Values are stored as orjson bytes with a
millisecond TTL (PSETEX). Listing and deletion walk the keyspace with SCAN
so large namespaces never block the server.
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any, cast

import orjson
import redis.asyncio as redis

from folio.config import settings

if TYPE_CHECKING:
    from redis.asyncio import Redis

# Module-level connection pool
_redis_client: Redis | None = None

DELETE_BATCH = 500


async def get_redis(url: str | None = None) -> Redis:
    """Get or create the Redis client.

    Uses connection pooling for efficient connection management.
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(  # type: ignore[no-untyped-call]
            url or settings.redis_url,
            decode_responses=False,
        )
    return _redis_client


async def close_redis() -> None:
    """Close Redis connections."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.close()
        _redis_client = None


class RedisCacheStore:
    """CacheStore backed by Redis."""

    def __init__(self, client: Redis):
        self.client = client

    async def get(self, key: str) -> Any | None:
        raw = await self.client.get(key)
        if raw is None:
            return None
        return orjson.loads(raw)

    async def set(self, key: str, value: Any, ttl_ms: int) -> None:
        data = orjson.dumps(value)
        if ttl_ms and ttl_ms > 0:
            await self.client.psetex(key, ttl_ms, data)
        else:
            await self.client.set(key, data)

    async def keys(self, pattern: str) -> list[str]:
        found: list[str] = []
        async for key in self.client.scan_iter(match=pattern):
            found.append(key.decode() if isinstance(key, bytes) else key)
        return sorted(found)

    async def delete_pattern(self, pattern: str) -> int:
        deleted = 0
        batch: list[Any] = []
        async for key in self.client.scan_iter(match=pattern):
            batch.append(key)
            if len(batch) >= DELETE_BATCH:
                deleted += int(await self.client.delete(*batch))
                batch = []
        if batch:
            deleted += int(await self.client.delete(*batch))
        return deleted

    async def health_check(self) -> bool:
        """Check Redis connectivity."""
        try:
            await cast(Awaitable[bool], self.client.ping())
            return True
        except Exception:
            return False
