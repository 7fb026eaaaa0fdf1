"""Fund-conservation check over one market's claimed predictions.

Every claim moves (payout + fee) out of the pool, and those amounts come from
the market's pooled stake. If the disbursed total ever exceeds the pooled
stake, funds from another market were used to pay winners.
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarketDisbursement:
    market_id: int
    total_stake: int
    disbursed: int       # Σ(payout_amount + fee_amount) of claimed predictions
    claims: int


def check_fund_conservation(disbursements: list[MarketDisbursement]) -> list[str]:
    """Return a violation message per market paying out more than it pooled."""
    violations: list[str] = []
    for d in disbursements:
        if d.disbursed > d.total_stake:
            msg = (
                f"market {d.market_id}: disbursed {d.disbursed} > pooled {d.total_stake} "
                f"over {d.claims} claims"
            )
            logger.error("Fund conservation violated: %s", msg)
            violations.append(msg)
    return violations
