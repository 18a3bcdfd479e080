"""Error types raised by the pagination engine.

Every error carries a stable ``code`` string so callers (and the optional
HTTP layer) can branch on it without matching class names:

- Option errors (``InvalidOptions``, ``StreamNoJump``, ``StreamNoTotals``,
  ``InvalidPages``) are raised before any I/O and are caller-correctable.
- ``InvalidCursor`` means the caller must restart from page 1.
- Guard errors (``JumpTooFar``, ``SkipTooLarge``) are never retried
  automatically; raise the limit or jump a shorter distance.
- ``CacheUnavailable`` is a configuration error for the bookmark feature.
- ``PaginationTimeout`` (code ``Timeout``) replaces any partial result.
"""

from __future__ import annotations

from typing import Any


class PaginationError(Exception):
    """Base class for all pagination engine errors."""

    code = "PaginationError"

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None):
        self.message = message
        self.details = details or []
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging and API responses."""
        data: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            data["details"] = self.details
        return data


class InvalidOptions(PaginationError):
    """Option combination or value rejected during validation."""

    code = "InvalidOptions"


class InvalidCursor(PaginationError):
    """Cursor is malformed, truncated, or belongs to another sort/version."""

    code = "InvalidCursor"

    def __init__(self, message: str = "Invalid cursor", details: list[dict[str, Any]] | None = None):
        super().__init__(message, details)


class JumpTooFar(PaginationError):
    """Bookmark walk would exceed maxHops."""

    code = "JumpTooFar"

    def __init__(self, hops: int, max_hops: int):
        self.hops = hops
        self.max_hops = max_hops
        super().__init__(
            f"Jump requires {hops} hops, exceeding maxHops={max_hops}",
            [{"path": ["page"], "hops": hops, "maxHops": max_hops}],
        )


class SkipTooLarge(PaginationError):
    """Offset jump would skip more than maxSkip records."""

    code = "SkipTooLarge"

    def __init__(self, skip: int, max_skip: int):
        self.skip = skip
        self.max_skip = max_skip
        super().__init__(
            f"Offset jump requires skipping {skip} records, exceeding maxSkip={max_skip}",
            [{"path": ["page"], "skip": skip, "maxSkip": max_skip}],
        )


class StreamNoJump(PaginationError):
    """Streaming cannot be combined with a page jump."""

    code = "StreamNoJump"

    def __init__(self) -> None:
        super().__init__("Stream mode does not support page jumps; use an 'after' cursor")


class StreamNoTotals(PaginationError):
    """Streaming cannot be combined with totals."""

    code = "StreamNoTotals"

    def __init__(self) -> None:
        super().__init__("Stream mode does not support totals")


class CacheUnavailable(PaginationError):
    """Bookmark operation attempted without a configured cache."""

    code = "CacheUnavailable"

    def __init__(self) -> None:
        super().__init__("A cache store is required for bookmark operations")


class InvalidPages(PaginationError):
    """Prewarm page list is empty."""

    code = "InvalidPages"

    def __init__(self) -> None:
        super().__init__("pages must be a non-empty list of page numbers")


class PaginationTimeout(PaginationError):
    """A store call exceeded its time budget."""

    code = "Timeout"

    def __init__(self, operation: str, max_time_ms: int):
        self.operation = operation
        self.max_time_ms = max_time_ms
        super().__init__(f"{operation} exceeded {max_time_ms}ms")


class CountQueueFull(PaginationError):
    """Too many count computations are waiting."""

    code = "CountQueueFull"

    def __init__(self, max_size: int):
        super().__init__(f"Count queue is full ({max_size})")
