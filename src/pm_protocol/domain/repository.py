"""Repository Protocol — dependency inversion for testability."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_protocol.domain.models import ProtocolConfig


class ProtocolRepositoryProtocol(Protocol):
    async def get_config(
        self, db: AsyncSession, for_update: bool = False
    ) -> ProtocolConfig | None: ...

    async def insert_if_absent(
        self,
        db: AsyncSession,
        owner_id: str,
        oracle_id: str,
        minimum_stake: int,
        fee_percent: int,
    ) -> ProtocolConfig: ...

    async def allocate_market_id(self, db: AsyncSession) -> int: ...

    async def set_oracle(self, db: AsyncSession, oracle_id: str) -> ProtocolConfig: ...

    async def set_minimum_stake(
        self, db: AsyncSession, minimum_stake: int
    ) -> ProtocolConfig: ...

    async def set_fee_percent(self, db: AsyncSession, fee_percent: int) -> ProtocolConfig: ...
