"""Folio: keyset pagination engine.

Stable cursor pages, forward-only streams, bookmark-assisted page jumps
and deduplicated total counting over any DataStore.
"""

from folio.cache import CacheKeys, CacheStore, MemoryCacheStore, RedisCacheStore
from folio.core import CursorCodec, PageQuery, SortDirection, SortField
from folio.errors import (
    CacheUnavailable,
    CountQueueFull,
    InvalidCursor,
    InvalidOptions,
    InvalidPages,
    JumpTooFar,
    PaginationError,
    PaginationTimeout,
    SkipTooLarge,
    StreamNoJump,
    StreamNoTotals,
)
from folio.paging import (
    FindPageOptions,
    PageResult,
    PageStream,
    Paginator,
    TotalsRecord,
    TotalsStatus,
)
from folio.store import DataStore, InMemoryDataStore

__version__ = "0.1.0"

__all__ = [
    "CacheKeys",
    "CacheStore",
    "CacheUnavailable",
    "CountQueueFull",
    "CursorCodec",
    "DataStore",
    "FindPageOptions",
    "InMemoryDataStore",
    "InvalidCursor",
    "InvalidOptions",
    "InvalidPages",
    "JumpTooFar",
    "MemoryCacheStore",
    "PageQuery",
    "PageResult",
    "PageStream",
    "PaginationError",
    "PaginationTimeout",
    "Paginator",
    "RedisCacheStore",
    "SkipTooLarge",
    "SortDirection",
    "SortField",
    "StreamNoJump",
    "StreamNoTotals",
    "TotalsRecord",
    "TotalsStatus",
]
