"""PredictionRepository — one row per (market_id, participant).

upsert_prediction replaces direction and stake of an existing row in place;
market totals are adjusted separately by the caller.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.amounts import fits_bigint
from src.pm_common.enums import Direction
from src.pm_common.errors import AlreadyClaimedError, InternalError
from src.pm_prediction.domain.models import Prediction

_PREDICTION_COLUMNS = """
    market_id, participant, direction, stake, claimed,
    payout_amount, fee_amount, claimed_at, created_at, updated_at
"""

_GET_PREDICTION_SQL = text(f"""
    SELECT {_PREDICTION_COLUMNS}
    FROM predictions
    WHERE market_id = :market_id AND participant = :participant
""")

_GET_PREDICTION_FOR_UPDATE_SQL = text(f"""
    SELECT {_PREDICTION_COLUMNS}
    FROM predictions
    WHERE market_id = :market_id AND participant = :participant
    FOR UPDATE
""")

_UPSERT_PREDICTION_SQL = text(f"""
    INSERT INTO predictions (market_id, participant, direction, stake)
    VALUES (:market_id, :participant, :direction, :stake)
    ON CONFLICT (market_id, participant) DO UPDATE
        SET direction = EXCLUDED.direction,
            stake = EXCLUDED.stake,
            claimed = FALSE,
            updated_at = NOW()
    RETURNING {_PREDICTION_COLUMNS}
""")

_MARK_CLAIMED_SQL = text(f"""
    UPDATE predictions
    SET claimed = TRUE,
        payout_amount = :payout_amount,
        fee_amount = :fee_amount,
        claimed_at = :claimed_at,
        updated_at = NOW()
    WHERE market_id = :market_id AND participant = :participant AND claimed = FALSE
    RETURNING {_PREDICTION_COLUMNS}
""")


def _row_to_prediction(row: object) -> Prediction:
    return Prediction(
        market_id=row.market_id,  # type: ignore[attr-defined]
        participant=row.participant,  # type: ignore[attr-defined]
        direction=row.direction,  # type: ignore[attr-defined]
        stake=row.stake,  # type: ignore[attr-defined]
        claimed=row.claimed,  # type: ignore[attr-defined]
        payout_amount=row.payout_amount,  # type: ignore[attr-defined]
        fee_amount=row.fee_amount,  # type: ignore[attr-defined]
        claimed_at=row.claimed_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class PredictionRepository:
    async def get_prediction(
        self,
        db: AsyncSession,
        market_id: int,
        participant: str,
        for_update: bool = False,
    ) -> Prediction | None:
        if not fits_bigint(market_id):
            return None
        sql = _GET_PREDICTION_FOR_UPDATE_SQL if for_update else _GET_PREDICTION_SQL
        result = await db.execute(sql, {"market_id": market_id, "participant": participant})
        row = result.fetchone()
        return _row_to_prediction(row) if row else None

    async def upsert_prediction(
        self,
        db: AsyncSession,
        market_id: int,
        participant: str,
        direction: Direction,
        stake: int,
    ) -> Prediction:
        result = await db.execute(
            _UPSERT_PREDICTION_SQL,
            {
                "market_id": market_id,
                "participant": participant,
                "direction": direction.value,
                "stake": stake,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Prediction upsert returned no rows")
        return _row_to_prediction(row)

    async def mark_claimed(
        self,
        db: AsyncSession,
        market_id: int,
        participant: str,
        payout_amount: int,
        fee_amount: int,
        claimed_at: datetime,
    ) -> Prediction:
        result = await db.execute(
            _MARK_CLAIMED_SQL,
            {
                "market_id": market_id,
                "participant": participant,
                "payout_amount": payout_amount,
                "fee_amount": fee_amount,
                "claimed_at": claimed_at,
            },
        )
        row = result.fetchone()
        if row is None:
            raise AlreadyClaimedError(market_id, participant)
        return _row_to_prediction(row)
