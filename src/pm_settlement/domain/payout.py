"""Payout math — pure integer functions, no I/O.

All amounts are integers in the collateral's smallest unit. Every division
floors, so the sum of what winners receive (payout + fee) can never exceed
the pooled stake:

    winnings = floor(stake * total_stake / winning_stake)
    fee      = floor(winnings * fee_percent / 100)
    payout   = winnings - fee

Σ winnings over the winning side ≤ total_stake because Σ stake = winning_stake
and each term is floored.
"""

from dataclasses import dataclass

from src.pm_common.enums import Direction
from src.pm_common.errors import NoWinningStakeError

PERCENT_DENOMINATOR = 100


@dataclass(frozen=True)
class PayoutQuote:
    winnings: int
    fee: int
    payout: int


def winning_direction(start_price: int, end_price: int) -> Direction:
    """UP only on a strict rise; an unchanged or lower price resolves DOWN."""
    return Direction.UP if end_price > start_price else Direction.DOWN


def calc_winnings(stake: int, total_stake: int, winning_stake: int) -> int:
    if winning_stake <= 0:
        raise NoWinningStakeError()
    return stake * total_stake // winning_stake


def calc_fee(winnings: int, fee_percent: int) -> int:
    return winnings * fee_percent // PERCENT_DENOMINATOR


def quote_payout(
    stake: int,
    total_up_stake: int,
    total_down_stake: int,
    winner: Direction,
    fee_percent: int,
) -> PayoutQuote:
    """Gross winnings, protocol fee and net payout for one winning stake."""
    winning_stake = total_up_stake if winner == Direction.UP else total_down_stake
    winnings = calc_winnings(stake, total_up_stake + total_down_stake, winning_stake)
    fee = calc_fee(winnings, fee_percent)
    return PayoutQuote(winnings=winnings, fee=fee, payout=winnings - fee)
