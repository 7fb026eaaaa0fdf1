"""Admission rules for a new prediction. Each raises on violation."""

from src.pm_common.enums import Direction
from src.pm_common.errors import InvalidParameterError, InvalidPredictionError, MarketClosedError
from src.pm_market.domain.models import Market


def check_window_open(market: Market, height: int) -> None:
    """Staking is allowed only for start_block <= height < end_block."""
    if not market.is_open_at(height):
        raise MarketClosedError(market.id, height)


def parse_direction(raw: str) -> Direction:
    try:
        return Direction(raw.strip().upper())
    except (AttributeError, ValueError):
        raise InvalidPredictionError(f"unknown direction {raw!r}") from None


def check_stake(stake: int, minimum_stake: int) -> None:
    if stake <= 0:
        raise InvalidParameterError(f"stake must be > 0, got {stake}")
    if stake < minimum_stake:
        raise InvalidPredictionError(f"stake {stake} is below the minimum of {minimum_stake}")
