"""SQLAlchemy-backed data store.

Builds keyset range reads against a SQLAlchemy Core table:

    SELECT * FROM t
    WHERE <filter> AND (a > :a OR (a = :a AND id > :id))
    ORDER BY a, id
    LIMIT :limit OFFSET :skip

Per-field direction flips the comparison operator, so mixed ASC/DESC sorts
work without row-value comparisons. Sort columns are expected to be NOT NULL.
On PostgreSQL ``max_time_ms`` is enforced server-side with
``SET LOCAL statement_timeout`` in addition to the engine's own deadline.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy import ColumnElement, Select, Table, and_, false, func, or_, select, text, true
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from folio.core.query import SortDirection, SortField
from folio.store.base import RangeRead, Record

_OPERATORS = {
    "$eq": lambda col, v: col == v,
    "$ne": lambda col, v: col != v,
    "$gt": lambda col, v: col > v,
    "$gte": lambda col, v: col >= v,
    "$lt": lambda col, v: col < v,
    "$lte": lambda col, v: col <= v,
    "$in": lambda col, v: col.in_(list(v)),
    "$nin": lambda col, v: col.not_in(list(v)),
    "$exists": lambda col, v: col.is_not(None) if v else col.is_(None),
}


class SqlDataStore:
    """DataStore over one table reachable through an async session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], table: Table):
        self.session_factory = session_factory
        self.table = table

    def _column(self, name: str) -> Any:
        try:
            return self.table.c[name]
        except KeyError as exc:
            raise ValueError(f"Unknown column '{name}' on table '{self.table.name}'") from exc

    def filter_clause(self, filter: Mapping[str, Any]) -> ColumnElement[bool]:
        """Translate the Mongo-style filter dialect into a WHERE clause."""
        clauses: list[ColumnElement[bool]] = []
        for name, condition in filter.items():
            col = self._column(name)
            if isinstance(condition, Mapping) and condition and all(
                str(k).startswith("$") for k in condition
            ):
                for op, operand in condition.items():
                    build = _OPERATORS.get(op)
                    if build is None:
                        raise ValueError(f"Unsupported filter operator: {op}")
                    clauses.append(build(col, operand))
            elif condition is None:
                clauses.append(col.is_(None))
            else:
                clauses.append(col == condition)
        return and_(true(), *clauses)

    def keyset_clause(
        self, sort: tuple[SortField, ...], after: tuple[Any, ...]
    ) -> ColumnElement[bool]:
        """Strictly-after predicate for a composite sort."""
        branches: list[ColumnElement[bool]] = []
        for i, spec in enumerate(sort):
            col = self._column(spec.field)
            equal_prefix = [self._column(sort[j].field) == after[j] for j in range(i)]
            if spec.direction == SortDirection.ASC:
                step = col > after[i]
            else:
                step = col < after[i]
            branches.append(and_(*equal_prefix, step))
        return or_(false(), *branches)

    def build_select(self, read: RangeRead) -> Select[Any]:
        stmt = select(self.table).where(self.filter_clause(read.filter))
        if read.after is not None:
            stmt = stmt.where(self.keyset_clause(read.sort, read.after))
        order = [
            self._column(f.field).asc()
            if f.direction == SortDirection.ASC
            else self._column(f.field).desc()
            for f in read.sort
        ]
        stmt = stmt.order_by(*order).limit(read.limit)
        if read.skip:
            stmt = stmt.offset(read.skip)
        return stmt

    async def _apply_timeout(self, session: AsyncSession, max_time_ms: int) -> None:
        if session.get_bind().dialect.name == "postgresql":
            await session.execute(text(f"SET LOCAL statement_timeout = {int(max_time_ms)}"))

    async def find(self, read: RangeRead) -> list[Record]:
        stmt = self.build_select(read)
        async with self.session_factory() as session, session.begin():
            await self._apply_timeout(session, read.max_time_ms)
            result = await session.execute(stmt)
            return [dict(row._mapping) for row in result]

    async def count(self, filter: Mapping[str, Any], *, max_time_ms: int) -> int:
        stmt = select(func.count()).select_from(self.table).where(self.filter_clause(filter))
        async with self.session_factory() as session, session.begin():
            await self._apply_timeout(session, max_time_ms)
            result = await session.execute(stmt)
            return int(result.scalar_one())
