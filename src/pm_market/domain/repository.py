# src/pm_market/domain/repository.py
"""Repository Protocol — dependency inversion for testability.

Unit tests inject a fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import Direction
from src.pm_market.domain.models import Market


class MarketRepositoryProtocol(Protocol):
    async def get_market_by_id(
        self, db: AsyncSession, market_id: int, for_update: bool = False
    ) -> Market | None: ...

    async def list_markets(
        self,
        db: AsyncSession,
        resolved: bool | None,
        cursor_id: int | None,
        limit: int,
    ) -> list[Market]: ...

    async def insert_market(
        self,
        db: AsyncSession,
        market_id: int,
        start_price: int,
        start_block: int,
        end_block: int,
        created_by: str,
    ) -> Market: ...

    async def mark_resolved(
        self,
        db: AsyncSession,
        market_id: int,
        end_price: int,
        resolved_by: str,
        resolved_at: datetime,
    ) -> Market: ...

    async def add_stake(
        self, db: AsyncSession, market_id: int, direction: Direction, amount: int
    ) -> Market: ...
