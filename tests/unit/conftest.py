"""Shared fixtures for pagination engine tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from folio.cache.memory import MemoryCacheStore
from folio.config import Settings
from folio.paging.facade import Paginator
from folio.store.memory import InMemoryDataStore

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_records(count: int = 50) -> list[dict[str, Any]]:
    """Records 1..count with a few sortable fields."""
    return [
        {
            "id": i,
            "score": i % 7,
            "group": "a" if i % 2 else "b",
            "created_at": BASE_TIME + timedelta(minutes=i),
        }
        for i in range(1, count + 1)
    ]


@pytest.fixture
def records() -> list[dict[str, Any]]:
    return make_records(50)


@pytest.fixture
def store(records: list[dict[str, Any]]) -> InMemoryDataStore:
    return InMemoryDataStore(records)


@pytest.fixture
def cache() -> MemoryCacheStore:
    return MemoryCacheStore()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        cache_prefix="test",
        bookmark_step=1,
        bookmark_max_hops=20,
        default_max_time_ms=1000,
        totals_max_time_ms=1000,
    )


@pytest.fixture
def paginator(
    store: InMemoryDataStore, cache: MemoryCacheStore, test_settings: Settings
) -> Paginator:
    return Paginator(store, cache=cache, settings=test_settings)
