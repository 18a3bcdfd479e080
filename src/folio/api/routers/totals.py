"""Async totals polling endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from folio.api.deps import get_paginator
from folio.paging.facade import Paginator

router = APIRouter(prefix="/totals", tags=["Totals"])


@router.get("/{token}")
async def poll_totals(token: str, paginator: Paginator = Depends(get_paginator)) -> dict[str, Any]:
    """Current state of an async totals token."""
    record = await paginator.poll_totals(token)
    return record.to_dict()
