"""Repository Protocol — dependency inversion for testability."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_settlement.domain.invariants import MarketDisbursement


class SettlementRepositoryProtocol(Protocol):
    async def get_disbursements(
        self, db: AsyncSession, market_id: int | None = None
    ) -> list[MarketDisbursement]: ...
