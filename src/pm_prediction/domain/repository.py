"""Repository Protocol — dependency inversion for testability."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import Direction
from src.pm_prediction.domain.models import Prediction


class PredictionRepositoryProtocol(Protocol):
    async def get_prediction(
        self,
        db: AsyncSession,
        market_id: int,
        participant: str,
        for_update: bool = False,
    ) -> Prediction | None: ...

    async def upsert_prediction(
        self,
        db: AsyncSession,
        market_id: int,
        participant: str,
        direction: Direction,
        stake: int,
    ) -> Prediction: ...

    async def mark_claimed(
        self,
        db: AsyncSession,
        market_id: int,
        participant: str,
        payout_amount: int,
        fee_amount: int,
        claimed_at: datetime,
    ) -> Prediction: ...
