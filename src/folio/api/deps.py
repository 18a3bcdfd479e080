"""FastAPI dependencies."""

from __future__ import annotations

from typing import Any

from fastapi import Request
from pydantic import BaseModel, Field

from folio.core.query import PageQuery
from folio.paging.facade import Paginator


def get_paginator(request: Request) -> Paginator:
    """The Paginator installed by create_app."""
    return request.app.state.paginator  # type: ignore[no-any-return]


class QueryBody(BaseModel):
    """Wire form of a PageQuery."""

    filter: dict[str, Any] = Field(default_factory=dict)
    sort: list[tuple[str, int | str]] | dict[str, int | str] | None = None
    limit: int | None = Field(default=None, ge=1)

    def to_query(self, paginator: Paginator) -> PageQuery:
        return paginator.query(filter=self.filter, sort=self.sort, limit=self.limit)
