"""Tests for find_page option parsing."""

import pytest

from folio.errors import InvalidOptions
from folio.paging.options import FindPageOptions, TotalsMode, parse_options


class TestParseOptions:
    """Test camelCase aliases, shorthands and error mapping."""

    def test_camel_case_aliases(self) -> None:
        opts = parse_options(
            {
                "page": 3,
                "offsetJump": {"enable": True, "maxSkip": 100},
                "totals": {"mode": "sync", "maxTimeMS": 500},
                "batchSize": 10,
            }
        )
        assert opts.offset_enabled is True
        assert opts.offset_jump is not None and opts.offset_jump.max_skip == 100
        assert opts.totals_mode == TotalsMode.SYNC
        assert opts.totals is not None and opts.totals.max_time_ms == 500
        assert opts.batch_size == 10

    def test_snake_case_keywords(self) -> None:
        opts = parse_options(jump={"step": 2, "max_hops": 4})
        assert opts.jump is not None
        assert opts.jump.max_hops == 4

    def test_totals_shorthand(self) -> None:
        assert parse_options(totals="async").totals_mode == TotalsMode.ASYNC
        assert parse_options(totals=False).totals_mode == TotalsMode.NONE

    def test_keywords_override_model(self) -> None:
        base = FindPageOptions(page=2)
        assert parse_options(base, page=5).page == 5

    def test_model_passthrough(self) -> None:
        base = FindPageOptions(page=2)
        assert parse_options(base) is base

    @pytest.mark.parametrize(
        "options",
        [
            {"page": 0},
            {"page": "2"},
            {"page": 1.5},
            {"batchSize": 0},
            {"totals": {"mode": "approx"}},
            {"unknown": True},
        ],
    )
    def test_invalid(self, options: dict) -> None:
        with pytest.raises(InvalidOptions) as exc_info:
            parse_options(options)
        assert exc_info.value.details
