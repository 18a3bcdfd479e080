"""Tests for the Redis cache store against a mocked client."""

from unittest.mock import AsyncMock, MagicMock

import orjson
import pytest

from folio.cache.redis import RedisCacheStore


def _scan(keys: list[bytes]):  # type: ignore[no-untyped-def]
    async def scan_iter(match: str):  # type: ignore[no-untyped-def]
        for key in keys:
            yield key

    return scan_iter


@pytest.fixture
def client() -> MagicMock:
    mock = MagicMock()
    mock.get = AsyncMock()
    mock.set = AsyncMock()
    mock.psetex = AsyncMock()
    mock.delete = AsyncMock()
    mock.ping = AsyncMock()
    return mock


class TestRedisCacheStore:
    """Test serialization and keyspace operations."""

    @pytest.mark.asyncio
    async def test_get_missing(self, client: MagicMock) -> None:
        client.get.return_value = None
        assert await RedisCacheStore(client).get("k") is None

    @pytest.mark.asyncio
    async def test_get_decodes_orjson(self, client: MagicMock) -> None:
        client.get.return_value = orjson.dumps({"status": "ready"})
        assert await RedisCacheStore(client).get("k") == {"status": "ready"}

    @pytest.mark.asyncio
    async def test_set_uses_millisecond_ttl(self, client: MagicMock) -> None:
        await RedisCacheStore(client).set("k", "cursor", 1500)
        client.psetex.assert_awaited_once_with("k", 1500, orjson.dumps("cursor"))

    @pytest.mark.asyncio
    async def test_set_without_ttl(self, client: MagicMock) -> None:
        await RedisCacheStore(client).set("k", 1, 0)
        client.set.assert_awaited_once_with("k", b"1")
        client.psetex.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_keys_decoded_and_sorted(self, client: MagicMock) -> None:
        client.scan_iter = _scan([b"p:bm:x:2", b"p:bm:x:1"])
        assert await RedisCacheStore(client).keys("p:bm:x:*") == ["p:bm:x:1", "p:bm:x:2"]

    @pytest.mark.asyncio
    async def test_delete_pattern(self, client: MagicMock) -> None:
        client.scan_iter = _scan([b"a", b"b", b"c"])
        client.delete.return_value = 3
        assert await RedisCacheStore(client).delete_pattern("*") == 3
        client.delete.assert_awaited_once_with(b"a", b"b", b"c")

    @pytest.mark.asyncio
    async def test_health_check(self, client: MagicMock) -> None:
        assert await RedisCacheStore(client).health_check() is True
        client.ping.side_effect = ConnectionError("down")
        assert await RedisCacheStore(client).health_check() is False
