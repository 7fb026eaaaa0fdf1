"""SettlementRepository — read-only aggregates for the conservation audit."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.amounts import fits_bigint
from src.pm_settlement.domain.invariants import MarketDisbursement

_DISBURSEMENT_SQL = text("""
    SELECT m.id AS market_id,
           m.total_up_stake + m.total_down_stake AS total_stake,
           COALESCE(SUM(p.payout_amount + p.fee_amount), 0) AS disbursed,
           COUNT(p.participant) AS claims
    FROM markets m
    LEFT JOIN predictions p
        ON p.market_id = m.id AND p.claimed = TRUE
    WHERE CAST(:market_id AS BIGINT) IS NULL OR m.id = CAST(:market_id AS BIGINT)
    GROUP BY m.id, m.total_up_stake, m.total_down_stake
    ORDER BY m.id
""")


def _row_to_disbursement(row: object) -> MarketDisbursement:
    return MarketDisbursement(
        market_id=row.market_id,  # type: ignore[attr-defined]
        total_stake=int(row.total_stake),  # type: ignore[attr-defined]
        disbursed=int(row.disbursed),  # type: ignore[attr-defined]
        claims=int(row.claims),  # type: ignore[attr-defined]
    )


class SettlementRepository:
    async def get_disbursements(
        self, db: AsyncSession, market_id: int | None = None
    ) -> list[MarketDisbursement]:
        if market_id is not None and not fits_bigint(market_id):
            return []
        result = await db.execute(_DISBURSEMENT_SQL, {"market_id": market_id})
        return [_row_to_disbursement(row) for row in result.fetchall()]
