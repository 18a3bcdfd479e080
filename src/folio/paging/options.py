"""Caller-facing options for find_page.

Options accept both snake_case and the camelCase names used on the wire
(``offsetJump``, ``maxHops``, ``maxTimeMS``, ``batchSize`` ...). Parsing
errors surface as InvalidOptions, never as raw pydantic errors.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError, field_validator

from folio.errors import InvalidOptions


class PaginationMode(str, Enum):
    """Access mode, resolved once during validation."""

    STREAM = "stream"
    CURSOR = "cursor"
    JUMP = "jump"


class TotalsMode(str, Enum):
    NONE = "none"
    SYNC = "sync"
    ASYNC = "async"


class _Options(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)


class OffsetJumpOptions(_Options):
    enable: bool = False
    max_skip: StrictInt | None = Field(default=None, ge=0, alias="maxSkip")


class JumpOptions(_Options):
    step: StrictInt | None = Field(default=None, ge=1)
    max_hops: StrictInt | None = Field(default=None, ge=0, alias="maxHops")


class TotalsOptions(_Options):
    mode: TotalsMode = TotalsMode.NONE
    max_time_ms: StrictInt | None = Field(default=None, ge=1, alias="maxTimeMS")
    ttl_ms: StrictInt | None = Field(default=None, ge=1, alias="ttlMs")


class FindPageOptions(_Options):
    """Everything find_page accepts besides the query itself."""

    after: str | None = None
    page: StrictInt | None = Field(default=None, ge=1)
    offset_jump: OffsetJumpOptions | None = Field(default=None, alias="offsetJump")
    jump: JumpOptions | None = None
    totals: TotalsOptions | None = None
    stream: bool = False
    batch_size: StrictInt | None = Field(default=None, ge=1, alias="batchSize")
    max_time_ms: StrictInt | None = Field(default=None, ge=1, alias="maxTimeMS")
    meta: bool = False

    @field_validator("totals", mode="before")
    @classmethod
    def _coerce_totals(cls, value: Any) -> Any:
        # totals=False / "sync" shorthands
        if value is False or value is None:
            return None
        if isinstance(value, str):
            return {"mode": value}
        return value

    @property
    def totals_mode(self) -> TotalsMode:
        return self.totals.mode if self.totals else TotalsMode.NONE

    @property
    def offset_enabled(self) -> bool:
        return bool(self.offset_jump and self.offset_jump.enable)


def parse_options(
    options: FindPageOptions | Mapping[str, Any] | None = None, **overrides: Any
) -> FindPageOptions:
    """Build FindPageOptions from a model, a mapping and/or keyword overrides."""
    if isinstance(options, FindPageOptions) and not overrides:
        return options

    data: dict[str, Any] = {}
    if isinstance(options, FindPageOptions):
        data.update(options.model_dump(exclude_unset=True))
    elif options is not None:
        data.update(options)
    data.update(overrides)

    try:
        return FindPageOptions.model_validate(data)
    except ValidationError as exc:
        details = [
            {"path": list(err["loc"]), "type": err["type"], "message": err["msg"]}
            for err in exc.errors()
        ]
        raise InvalidOptions("Invalid find_page options", details) from exc
