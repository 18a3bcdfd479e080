"""Cache key schema for the pagination engine.

Key format:
- {prefix}:bm:{fingerprint}:{page}  bookmark (end cursor of page)
- {prefix}:tot:{fingerprint}        totals record

Where:
- prefix: namespace for shared Redis deployments (default "folio")
- fingerprint: PageQuery.fingerprint (hex SHA-256)
- page: 1-based page number
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CacheKeys:
    """Cache key generator bound to one namespace prefix."""

    prefix: str = "folio"

    def bookmark(self, fingerprint: str, page: int) -> str:
        """Key for the bookmark of one page."""
        return f"{self.prefix}:bm:{fingerprint}:{page}"

    def bookmark_pattern(self, fingerprint: str | None = None) -> str:
        """Pattern matching one query's bookmarks, or all bookmarks."""
        if fingerprint is None:
            return f"{self.prefix}:bm:*"
        return f"{self.prefix}:bm:{fingerprint}:*"

    def totals(self, fingerprint: str) -> str:
        """Key for a query's totals record."""
        return f"{self.prefix}:tot:{fingerprint}"

    def parse_bookmark(self, key: str) -> tuple[str, int] | None:
        """Split a bookmark key into (fingerprint, page).

        Returns None if the key doesn't match the bookmark format.
        """
        parts = key.split(":")
        if len(parts) != 4 or parts[0] != self.prefix or parts[1] != "bm":
            return None
        if not parts[3].isdigit():
            return None
        return parts[2], int(parts[3])
