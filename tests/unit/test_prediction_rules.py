"""Unit tests for prediction admission rules."""

import pytest

from src.pm_common.enums import Direction
from src.pm_common.errors import InvalidParameterError, InvalidPredictionError, MarketClosedError
from src.pm_market.domain.models import Market
from src.pm_prediction.domain.rules import check_stake, check_window_open, parse_direction


def _market(start_block: int = 10, end_block: int = 20) -> Market:
    return Market(
        id=1, start_price=100, end_price=0, total_up_stake=0, total_down_stake=0,
        start_block=start_block, end_block=end_block, resolved=False,
        created_by="owner", resolved_by=None, resolved_at=None,
    )


class TestWindow:
    @pytest.mark.parametrize("height", [10, 15, 19])
    def test_open_inside_window(self, height: int) -> None:
        check_window_open(_market(), height)

    @pytest.mark.parametrize("height", [0, 9, 20, 21])
    def test_closed_outside_window(self, height: int) -> None:
        with pytest.raises(MarketClosedError):
            check_window_open(_market(), height)


class TestParseDirection:
    @pytest.mark.parametrize("raw", ["UP", "up", " Up "])
    def test_up(self, raw: str) -> None:
        assert parse_direction(raw) == Direction.UP

    def test_down(self) -> None:
        assert parse_direction("down") == Direction.DOWN

    @pytest.mark.parametrize("raw", ["SIDEWAYS", "", "YES"])
    def test_unknown(self, raw: str) -> None:
        with pytest.raises(InvalidPredictionError):
            parse_direction(raw)


class TestCheckStake:
    def test_at_minimum_ok(self) -> None:
        check_stake(1_000_000, 1_000_000)

    def test_below_minimum(self) -> None:
        with pytest.raises(InvalidPredictionError):
            check_stake(500_000, 1_000_000)

    @pytest.mark.parametrize("stake", [0, -1])
    def test_non_positive(self, stake: int) -> None:
        with pytest.raises(InvalidParameterError):
            check_stake(stake, 1_000_000)
