"""Pagination engine: fetcher, bookmarks, jumps, totals and the facade."""

from folio.paging.bookmarks import BookmarkListing, BookmarkStore, ClearResult, PrewarmResult
from folio.paging.count_queue import CountQueue
from folio.paging.facade import Paginator
from folio.paging.fetcher import Page, PageFetcher
from folio.paging.jump import BookmarkStrategy, JumpResolver, OffsetStrategy, ResolvedStart
from folio.paging.options import (
    FindPageOptions,
    JumpOptions,
    OffsetJumpOptions,
    PaginationMode,
    TotalsMode,
    TotalsOptions,
)
from folio.paging.results import PageResult, PageStream
from folio.paging.totals import TotalsEstimator, TotalsRecord, TotalsStatus

__all__ = [
    "BookmarkListing",
    "BookmarkStore",
    "BookmarkStrategy",
    "ClearResult",
    "CountQueue",
    "FindPageOptions",
    "JumpOptions",
    "JumpResolver",
    "OffsetJumpOptions",
    "OffsetStrategy",
    "Page",
    "PageFetcher",
    "PageResult",
    "PageStream",
    "PaginationMode",
    "Paginator",
    "PrewarmResult",
    "ResolvedStart",
    "TotalsEstimator",
    "TotalsMode",
    "TotalsOptions",
    "TotalsRecord",
    "TotalsStatus",
]
