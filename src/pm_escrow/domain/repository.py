"""Repository Protocol — dependency inversion for testability.

Unit tests inject a fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import LedgerEntryType
from src.pm_escrow.domain.models import Account, LedgerEntry, TransferReceipt


class EscrowRepositoryProtocol(Protocol):
    async def get_account(self, db: AsyncSession, user_id: str) -> Account | None: ...

    async def balance_of(self, db: AsyncSession, user_id: str) -> int: ...

    async def transfer(
        self,
        db: AsyncSession,
        amount: int,
        sender: str,
        recipient: str,
        entry_type: LedgerEntryType,
        reference_type: str,
        reference_id: str,
    ) -> TransferReceipt: ...

    async def deposit(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> tuple[Account, LedgerEntry]: ...
