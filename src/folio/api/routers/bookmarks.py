"""Bookmark lifecycle endpoints.

- POST /bookmarks/prewarm  walk once and cache bookmarks for the given pages
- POST /bookmarks/list     list bookmarks for a query, or all of them
- POST /bookmarks/clear    delete bookmarks for a query, or all of them
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from folio.api.deps import QueryBody, get_paginator
from folio.paging.facade import Paginator

router = APIRouter(prefix="/bookmarks", tags=["Bookmarks"])


class PrewarmRequest(BaseModel):
    model_config = {"populate_by_name": True}

    query: QueryBody
    pages: list[Any] = Field(default_factory=list)
    max_time_ms: int | None = Field(default=None, ge=1, alias="maxTimeMS")


class ScopeRequest(BaseModel):
    query: QueryBody | None = None


class PrewarmResponse(BaseModel):
    warmed: int
    failed: int
    keys: list[str]


class ListResponse(BaseModel):
    count: int
    pages: list[int]
    keys: list[str]


class ClearResponse(BaseModel):
    model_config = {"populate_by_name": True}

    cleared: int
    keys_before: int = Field(alias="keysBefore")
    pattern: str


@router.post("/prewarm", response_model=PrewarmResponse)
async def prewarm_bookmarks(
    body: PrewarmRequest, paginator: Paginator = Depends(get_paginator)
) -> PrewarmResponse:
    result = await paginator.prewarm_bookmarks(
        body.query.to_query(paginator), body.pages, max_time_ms=body.max_time_ms
    )
    return PrewarmResponse(warmed=result.warmed, failed=result.failed, keys=result.keys)


@router.post("/list", response_model=ListResponse)
async def list_bookmarks(
    body: ScopeRequest, paginator: Paginator = Depends(get_paginator)
) -> ListResponse:
    query = body.query.to_query(paginator) if body.query else None
    listing = await paginator.list_bookmarks(query)
    return ListResponse(count=listing.count, pages=listing.pages, keys=listing.keys)


@router.post("/clear", response_model=ClearResponse, response_model_by_alias=True)
async def clear_bookmarks(
    body: ScopeRequest, paginator: Paginator = Depends(get_paginator)
) -> ClearResponse:
    query = body.query.to_query(paginator) if body.query else None
    result = await paginator.clear_bookmarks(query)
    return ClearResponse(cleared=result.cleared, keys_before=result.keys_before, pattern=result.pattern)
