"""Cache collaborators.

Bookmarks and totals records live in an injected CacheStore; the engine
never assumes durability and never owns a module-level cache singleton.
"""

from folio.cache.base import CacheStore
from folio.cache.keys import CacheKeys
from folio.cache.memory import MemoryCacheStore
from folio.cache.redis import RedisCacheStore, close_redis, get_redis

__all__ = [
    "CacheKeys",
    "CacheStore",
    "MemoryCacheStore",
    "RedisCacheStore",
    "close_redis",
    "get_redis",
]
