"""Query model and cursor codec."""

from folio.core.cursor import CURSOR_VERSION, CursorCodec
from folio.core.query import (
    PageQuery,
    SortDirection,
    SortField,
    ensure_stable_sort,
    fingerprint_of,
    normalize_sort,
)

__all__ = [
    "CURSOR_VERSION",
    "CursorCodec",
    "PageQuery",
    "SortDirection",
    "SortField",
    "ensure_stable_sort",
    "fingerprint_of",
    "normalize_sort",
]
