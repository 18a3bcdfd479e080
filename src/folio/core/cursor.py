"""Opaque position tokens for keyset pagination.

The cursor is an unpadded URL-safe base64 encoding of compact JSON:

    {"v": 1, "s": [["created_at", -1], ["id", -1]], "a": [["dt", "..."], ["s", "abc"]]}

- v: format version
- s: the sort the cursor was produced under
- a: the typed sort-key values of the anchor record, one per sort field

Values are tagged with their type so that decoding restores exactly what
was encoded (a datetime comes back as a datetime, not an ISO string). A
codec is bound to one sort; a cursor from another sort or version is
rejected rather than reinterpreted.
"""

from __future__ import annotations

import base64
import binascii
import math
from collections.abc import Sequence
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

import orjson

from folio.core.query import SortField
from folio.errors import InvalidCursor

CURSOR_VERSION = 1


def _tag(value: Any) -> list[Any]:
    # bool before int, datetime before date: both are subclasses
    if value is None:
        return ["n", None]
    if isinstance(value, bool):
        return ["b", value]
    if isinstance(value, int):
        return ["i", value]
    if isinstance(value, float):
        # orjson writes inf and nan as null
        return ["f", value if math.isfinite(value) else str(value)]
    if isinstance(value, str):
        return ["s", value]
    if isinstance(value, datetime):
        return ["dt", value.isoformat()]
    if isinstance(value, date):
        return ["d", value.isoformat()]
    if isinstance(value, UUID):
        return ["u", str(value)]
    if isinstance(value, Decimal):
        return ["dec", str(value)]
    raise InvalidCursor(f"Unsupported sort key type: {type(value).__name__}")


def _untag(entry: Any) -> Any:
    if not isinstance(entry, list) or len(entry) != 2:
        raise InvalidCursor("Malformed cursor value")
    tag, raw = entry
    try:
        if tag == "n" and raw is None:
            return None
        if tag == "b" and isinstance(raw, bool):
            return raw
        if tag == "i" and isinstance(raw, int) and not isinstance(raw, bool):
            return raw
        if tag == "f" and isinstance(raw, (int, float)) and not isinstance(raw, bool):
            return float(raw)
        if tag == "f" and raw in ("inf", "-inf", "nan"):
            return float(raw)
        if tag == "s" and isinstance(raw, str):
            return raw
        if tag == "dt" and isinstance(raw, str):
            return datetime.fromisoformat(raw)
        if tag == "d" and isinstance(raw, str):
            return date.fromisoformat(raw)
        if tag == "u" and isinstance(raw, str):
            return UUID(raw)
        if tag == "dec" and isinstance(raw, str):
            return Decimal(raw)
    except (ValueError, InvalidOperation) as exc:
        raise InvalidCursor(f"Unparsable cursor value for tag '{tag}'") from exc
    raise InvalidCursor(f"Unknown cursor value tag: {tag!r}")


class CursorCodec:
    """Encode/decode cursors for one specific sort."""

    def __init__(self, sort: Sequence[SortField], version: int = CURSOR_VERSION):
        self.sort = tuple(sort)
        self.version = version
        self._sort_pairs = [f.as_pair() for f in self.sort]

    def encode(self, key: Sequence[Any]) -> str:
        """Encode a sort-key tuple into an opaque cursor."""
        if len(key) != len(self.sort):
            raise InvalidCursor(
                f"Sort key has {len(key)} values, sort has {len(self.sort)} fields"
            )
        payload = {
            "v": self.version,
            "s": self._sort_pairs,
            "a": [_tag(v) for v in key],
        }
        try:
            data = orjson.dumps(payload)
        except orjson.JSONEncodeError as exc:
            raise InvalidCursor("Sort key cannot be encoded") from exc
        return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")

    def decode(self, cursor: str) -> tuple[Any, ...]:
        """Decode a cursor back into the sort-key tuple.

        Raises:
            InvalidCursor: on any malformed, truncated, foreign-sort or
                foreign-version input.
        """
        if not isinstance(cursor, str) or not cursor:
            raise InvalidCursor("Cursor must be a non-empty string")
        try:
            padded = cursor + "=" * ((4 - len(cursor) % 4) % 4)
            raw = base64.urlsafe_b64decode(padded.encode("ascii"))
            payload = orjson.loads(raw)
        except (binascii.Error, UnicodeEncodeError, ValueError) as exc:
            raise InvalidCursor("Cursor is not valid base64 JSON") from exc

        if not isinstance(payload, dict) or set(payload) != {"v", "s", "a"}:
            raise InvalidCursor("Cursor has an unexpected structure")
        if payload["v"] != self.version:
            raise InvalidCursor(
                f"Cursor version {payload['v']!r} does not match {self.version}"
            )
        if payload["s"] != self._sort_pairs:
            raise InvalidCursor(
                "Cursor sort does not match the current sort",
                [{"path": ["cursor"], "cursorSort": payload["s"], "currentSort": self._sort_pairs}],
            )
        anchor = payload["a"]
        if not isinstance(anchor, list) or len(anchor) != len(self.sort):
            raise InvalidCursor("Cursor anchor does not match the sort length")
        return tuple(_untag(entry) for entry in anchor)
