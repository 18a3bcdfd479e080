"""Cache store collaborator contract.

Values are JSON-compatible (strings for cursors, dicts for totals records).
TTLs are in milliseconds. Pattern arguments use glob syntax with ``*``.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CacheStore(Protocol):
    """Get/set with TTL plus pattern-based list and delete."""

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl_ms: int) -> None: ...

    async def keys(self, pattern: str) -> list[str]: ...

    async def delete_pattern(self, pattern: str) -> int: ...
