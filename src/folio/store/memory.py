"""In-memory data store.

Holds records in a plain list and evaluates a small Mongo-style filter
dialect. Used as the reference store in tests and by embedders whose data
already lives in memory. ``reads`` and ``counts`` record how many store
round-trips the engine made, which is how hop counts are asserted.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from functools import cmp_to_key
from typing import Any

from folio.core.query import SortField, get_path
from folio.store.base import RangeRead, Record

_MISSING = object()


def _compare_values(a: Any, b: Any) -> int:
    # None sorts before every other value
    if a is None and b is None:
        return 0
    if a is None:
        return -1
    if b is None:
        return 1
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def compare_keys(a: tuple[Any, ...], b: tuple[Any, ...], sort: tuple[SortField, ...]) -> int:
    """Lexicographic comparison honouring per-field direction."""
    for left, right, spec in zip(a, b, sort):
        result = _compare_values(left, right) * int(spec.direction)
        if result:
            return result
    return 0


def _match_operator(value: Any, op: str, operand: Any) -> bool:
    if op == "$eq":
        return bool(value == operand)
    if op == "$ne":
        return bool(value != operand)
    if op == "$in":
        return value in operand
    if op == "$nin":
        return value not in operand
    if op == "$exists":
        return (value is not _MISSING) == bool(operand)
    if value is _MISSING or value is None:
        return False
    if op == "$gt":
        return bool(value > operand)
    if op == "$gte":
        return bool(value >= operand)
    if op == "$lt":
        return bool(value < operand)
    if op == "$lte":
        return bool(value <= operand)
    raise ValueError(f"Unsupported filter operator: {op}")


def _lookup(record: Record, path: str) -> Any:
    value: Any = record
    for part in path.split("."):
        if not isinstance(value, Mapping) or part not in value:
            return _MISSING
        value = value[part]
    return value


def matches(record: Record, filter: Mapping[str, Any]) -> bool:
    """Evaluate the filter dialect against one record."""
    for path, condition in filter.items():
        value = _lookup(record, path)
        if isinstance(condition, Mapping) and condition and all(
            str(k).startswith("$") for k in condition
        ):
            for op, operand in condition.items():
                if not _match_operator(value, op, operand):
                    return False
        elif value is _MISSING or value != condition:
            return False
    return True


class InMemoryDataStore:
    """DataStore over a list of mappings."""

    def __init__(self, records: Iterable[Record] = (), delay: float = 0.0):
        self.records: list[Record] = list(records)
        self.delay = delay
        self.reads = 0
        self.counts = 0

    def _sorted(self, filter: Mapping[str, Any], sort: tuple[SortField, ...]) -> list[Record]:
        selected = [r for r in self.records if matches(r, filter)]

        def key_of(record: Record) -> tuple[Any, ...]:
            return tuple(get_path(record, f.field) for f in sort)

        return sorted(
            selected,
            key=cmp_to_key(lambda a, b: compare_keys(key_of(a), key_of(b), sort)),
        )

    async def find(self, read: RangeRead) -> list[Record]:
        self.reads += 1
        if self.delay:
            await asyncio.sleep(self.delay)

        rows = self._sorted(read.filter, read.sort)
        if read.after is not None:
            after = read.after
            rows = [
                r
                for r in rows
                if compare_keys(tuple(get_path(r, f.field) for f in read.sort), after, read.sort)
                > 0
            ]
        return rows[read.skip : read.skip + read.limit]

    async def count(self, filter: Mapping[str, Any], *, max_time_ms: int) -> int:
        self.counts += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return sum(1 for r in self.records if matches(r, filter))

    def reset_counters(self) -> None:
        self.reads = 0
        self.counts = 0
