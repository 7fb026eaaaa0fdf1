"""EscrowApplicationService — balances and simulated funding.

Deposit commits its own transaction; the balance reads run without one.
System accounts cannot be funded by deposit.
Transfers are not exposed here: stake, payout, fee and withdrawal legs are
driven by the prediction, settlement and protocol services inside their own
transactions.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.amounts import BIGINT_MAX, validate_bounded
from src.pm_common.errors import InvalidParameterError
from src.pm_escrow.application.schemas import (
    BalanceResponse,
    DepositResponse,
    PoolBalanceResponse,
)
from src.pm_escrow.domain.constants import POOL_ACCOUNT_ID, is_system_account
from src.pm_escrow.domain.repository import EscrowRepositoryProtocol
from src.pm_escrow.infrastructure.persistence import EscrowRepository

logger = logging.getLogger(__name__)


class EscrowApplicationService:
    def __init__(self, repo: EscrowRepositoryProtocol | None = None) -> None:
        self._repo: EscrowRepositoryProtocol = repo or EscrowRepository()

    async def get_balance(self, db: AsyncSession, user_id: str) -> BalanceResponse:
        balance = await self._repo.balance_of(db, user_id)
        return BalanceResponse(user_id=user_id, balance=balance)

    async def get_pool_balance(self, db: AsyncSession) -> PoolBalanceResponse:
        balance = await self._repo.balance_of(db, POOL_ACCOUNT_ID)
        return PoolBalanceResponse(pool_account=POOL_ACCOUNT_ID, balance=balance)

    async def deposit(self, db: AsyncSession, user_id: str, amount: int) -> DepositResponse:
        try:
            if is_system_account(user_id):
                raise InvalidParameterError(f"{user_id} is a system account and cannot deposit")
            validate_bounded("deposit amount", amount)
            balance = await self._repo.balance_of(db, user_id)
            if amount > BIGINT_MAX - balance:
                raise InvalidParameterError(
                    f"deposit of {amount} would overflow balance {balance}"
                )
            account, entry = await self._repo.deposit(db, user_id, amount)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Deposit: user=%s amount=%d balance=%d", user_id, amount, account.balance)
        return DepositResponse(balance=account.balance, deposited=amount, ledger_entry_id=entry.id)
