"""HTTP error responses for pagination errors.

Renders every PaginationError as the Result/Message structure:

    {"messages": [{"code": "JumpTooFar", "messageType": "Error", "text": "...", "timestamp": "..."}]}
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from folio.errors import PaginationError


class MessageType(str, Enum):
    """Type of message in error response."""

    ERROR = "Error"
    WARNING = "Warning"
    INFO = "Info"
    EXCEPTION = "Exception"


class Message(BaseModel):
    """Single error message."""

    model_config = {"extra": "forbid", "populate_by_name": True}

    code: str
    message_type: MessageType = Field(alias="messageType")
    text: str
    timestamp: str | None = None


class Result(BaseModel):
    """Result wrapper for errors."""

    model_config = {"extra": "forbid"}

    messages: list[Message]


STATUS_BY_CODE: dict[str, int] = {
    "InvalidOptions": 400,
    "InvalidCursor": 400,
    "InvalidPages": 400,
    "StreamNoJump": 400,
    "StreamNoTotals": 400,
    "JumpTooFar": 422,
    "SkipTooLarge": 422,
    "CacheUnavailable": 503,
    "CountQueueFull": 503,
    "Timeout": 504,
}


def status_for(exc: PaginationError) -> int:
    return STATUS_BY_CODE.get(exc.code, 500)


def to_result(exc: PaginationError) -> Result:
    return Result(
        messages=[
            Message(
                code=exc.code,
                messageType=MessageType.ERROR,
                text=exc.message,
                timestamp=datetime.now(UTC).isoformat(),
            )
        ]
    )


async def pagination_exception_handler(request: Request, exc: PaginationError) -> JSONResponse:
    """Exception handler for pagination errors."""
    return JSONResponse(
        status_code=status_for(exc),
        content=to_result(exc).model_dump(by_alias=True),
    )
