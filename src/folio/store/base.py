"""Data store collaborator contract.

The engine never builds store-specific queries itself. It hands a RangeRead
to the store, which must return at most ``limit`` records that match
``filter``, are ordered by ``sort`` and, when ``after`` is set, sort strictly
after that key tuple. ``skip`` is only non-zero for offset jumps.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from folio.core.query import SortField

Record = Mapping[str, Any]


@dataclass(frozen=True)
class RangeRead:
    """One bounded range read."""

    filter: Mapping[str, Any]
    sort: tuple[SortField, ...]
    limit: int
    after: tuple[Any, ...] | None = None
    skip: int = 0
    max_time_ms: int = 2000
    extra: Mapping[str, Any] = field(default_factory=dict)


@runtime_checkable
class DataStore(Protocol):
    """Composite-sort range reads and timeout-bounded counts."""

    async def find(self, read: RangeRead) -> Sequence[Record]:
        """Return up to ``read.limit`` records strictly after ``read.after``."""
        ...

    async def count(self, filter: Mapping[str, Any], *, max_time_ms: int) -> int:
        """Exact number of records matching ``filter``."""
        ...
