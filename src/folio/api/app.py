"""FastAPI application factory for the pagination engine's admin surface."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import cast

from fastapi import FastAPI
from starlette.types import ExceptionHandler

from folio.api.errors import pagination_exception_handler
from folio.api.routers import bookmarks, metrics, totals
from folio.config import settings
from folio.errors import PaginationError
from folio.observability import configure_logging
from folio.observability.metrics import get_metrics
from folio.paging.facade import Paginator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: configure logging and metrics on startup."""
    configure_logging(json_format=settings.log_json, level=settings.log_level)
    get_metrics()  # Initialize metrics registry
    logger.info(f"Starting folio admin API ({settings.env})")
    yield
    logger.info("Shutting down folio admin API")


def create_app(paginator: Paginator) -> FastAPI:
    """Build an app serving bookmark lifecycle, totals polling and metrics."""
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.paginator = paginator

    app.add_exception_handler(PaginationError, cast(ExceptionHandler, pagination_exception_handler))

    app.include_router(bookmarks.router)
    app.include_router(totals.router)
    app.include_router(metrics.router)
    return app
