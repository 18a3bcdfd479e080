"""Query shape for keyset pagination.

A PageQuery is the (filter, sort, limit) triple every pagination operation
works on. The sort always ends in a unique tie-breaker so that the sort key
of a record identifies exactly one position in the result set.

The fingerprint is a SHA-256 over canonical JSON with sorted keys, so two
filters that differ only in key insertion order hash identically. Sort order
is significant and is hashed as an ordered list.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from functools import cached_property
from typing import Any, Union

import orjson

from folio.errors import InvalidOptions

FINGERPRINT_OPTIONS = orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS | orjson.OPT_UTC_Z


class SortDirection(IntEnum):
    """Sort direction, numerically compatible with Mongo-style specs."""

    ASC = 1
    DESC = -1

    @classmethod
    def parse(cls, value: Any) -> SortDirection:
        if isinstance(value, SortDirection):
            return value
        if isinstance(value, str):
            lowered = value.lower()
            if lowered in ("asc", "ascending", "1"):
                return cls.ASC
            if lowered in ("desc", "descending", "-1"):
                return cls.DESC
        elif isinstance(value, int) and not isinstance(value, bool) and value in (1, -1):
            return cls(value)
        raise InvalidOptions(
            f"Invalid sort direction: {value!r}",
            [{"path": ["sort"], "value": repr(value)}],
        )


@dataclass(frozen=True)
class SortField:
    """One component of a composite sort."""

    field: str
    direction: SortDirection = SortDirection.ASC

    def as_pair(self) -> list[Any]:
        return [self.field, int(self.direction)]


SortSpec = Union[Mapping[str, Any], Iterable[Union[SortField, tuple[str, Any], list[Any]]]]


def normalize_sort(sort: SortSpec | None) -> tuple[SortField, ...]:
    """Normalize the accepted sort spellings into SortField tuples."""
    if sort is None:
        return ()

    if isinstance(sort, Mapping):
        items: Iterable[Any] = sort.items()
    else:
        items = sort

    fields: list[SortField] = []
    seen: set[str] = set()
    for item in items:
        if isinstance(item, SortField):
            entry = item
        else:
            try:
                name, direction = item
            except (TypeError, ValueError) as exc:
                raise InvalidOptions(
                    f"Invalid sort entry: {item!r}", [{"path": ["sort"]}]
                ) from exc
            if not isinstance(name, str) or not name:
                raise InvalidOptions(f"Invalid sort field: {name!r}", [{"path": ["sort"]}])
            entry = SortField(name, SortDirection.parse(direction))
        if entry.field in seen:
            raise InvalidOptions(
                f"Sort field '{entry.field}' appears more than once", [{"path": ["sort"]}]
            )
        seen.add(entry.field)
        fields.append(entry)
    return tuple(fields)


def ensure_stable_sort(sort: tuple[SortField, ...], tie_breaker: str) -> tuple[SortField, ...]:
    """Append the unique tie-breaker unless the sort already contains it.

    The tie-breaker takes the direction of the last sort field so that a
    descending sort stays descending on ties.
    """
    if any(f.field == tie_breaker for f in sort):
        return sort
    direction = sort[-1].direction if sort else SortDirection.ASC
    return (*sort, SortField(tie_breaker, direction))


def _canonical_default(value: Any) -> Any:
    # sets have no stable iteration order across processes
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    return str(value)


def fingerprint_of(filter: Mapping[str, Any], sort: tuple[SortField, ...], limit: int) -> str:
    """Canonical, key-order-insensitive hash of (filter, sort, limit)."""
    payload = {
        "filter": filter,
        "sort": [f.as_pair() for f in sort],
        "limit": limit,
    }
    data = orjson.dumps(payload, option=FINGERPRINT_OPTIONS, default=_canonical_default)
    return hashlib.sha256(data).hexdigest()


@dataclass(frozen=True)
class PageQuery:
    """Filtered, sorted view of the record set with a fixed page size."""

    filter: Mapping[str, Any] = field(default_factory=dict)
    sort: tuple[SortField, ...] = ()
    limit: int = 20

    @classmethod
    def create(
        cls,
        filter: Mapping[str, Any] | None = None,
        sort: SortSpec | None = None,
        limit: int = 20,
        tie_breaker: str = "id",
    ) -> PageQuery:
        """Build a query, normalizing the sort and enforcing the tie-breaker."""
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidOptions(
                f"limit must be a positive integer, got {limit!r}", [{"path": ["limit"]}]
            )
        stable = ensure_stable_sort(normalize_sort(sort), tie_breaker)
        return cls(filter=dict(filter or {}), sort=stable, limit=limit)

    @cached_property
    def fingerprint(self) -> str:
        return fingerprint_of(self.filter, self.sort, self.limit)

    @property
    def sort_fields(self) -> tuple[str, ...]:
        return tuple(f.field for f in self.sort)

    def with_limit(self, limit: int) -> PageQuery:
        """Same filter and sort with a different page size."""
        return PageQuery(filter=self.filter, sort=self.sort, limit=limit)

    def sort_key(self, record: Mapping[str, Any]) -> tuple[Any, ...]:
        """Extract this query's sort-key tuple from a record."""
        return tuple(get_path(record, f.field) for f in self.sort)


def get_path(record: Mapping[str, Any], path: str) -> Any:
    """Read a possibly dotted field name from nested mappings."""
    value: Any = record
    for part in path.split("."):
        if not isinstance(value, Mapping) or part not in value:
            return None
        value = value[part]
    return value
