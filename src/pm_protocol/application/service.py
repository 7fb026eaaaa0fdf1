"""ProtocolAdminService — owner-gated protocol parameters and fee withdrawal.

Every setter locks the config row (FOR UPDATE), checks the owner role, then
validates, writes and commits. Any failure rolls the whole call back.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.amounts import validate_bounded
from src.pm_common.enums import LedgerEntryType
from src.pm_common.errors import InsufficientBalanceError, InternalError, InvalidParameterError
from src.pm_escrow.domain.constants import POOL_ACCOUNT_ID, is_system_account
from src.pm_escrow.domain.repository import EscrowRepositoryProtocol
from src.pm_escrow.infrastructure.persistence import EscrowRepository
from src.pm_protocol.application.schemas import ProtocolConfigResponse, WithdrawFeesResponse
from src.pm_protocol.domain.models import MAX_FEE_PERCENT, ProtocolConfig
from src.pm_protocol.domain.repository import ProtocolRepositoryProtocol
from src.pm_protocol.domain.roles import require_owner, roles_of
from src.pm_protocol.infrastructure.persistence import ProtocolRepository

logger = logging.getLogger(__name__)


async def load_config(
    repo: ProtocolRepositoryProtocol, db: AsyncSession, for_update: bool = False
) -> ProtocolConfig:
    """Fetch the singleton config; a missing row means bootstrap never ran."""
    config = await repo.get_config(db, for_update=for_update)
    if config is None:
        raise InternalError("Protocol configuration has not been bootstrapped")
    return config


def validate_minimum_stake(value: int) -> None:
    validate_bounded("minimum stake", value)


def validate_principal(role: str, principal: str) -> None:
    if not principal:
        raise InvalidParameterError(f"{role} id must not be empty")
    if is_system_account(principal):
        raise InvalidParameterError(f"{role} cannot be the system account {principal}")


def validate_fee_percent(value: int) -> None:
    if not (0 <= value <= MAX_FEE_PERCENT):
        raise InvalidParameterError(
            f"fee percent must be within [0, {MAX_FEE_PERCENT}], got {value}"
        )


class ProtocolAdminService:
    def __init__(
        self,
        repo: ProtocolRepositoryProtocol | None = None,
        escrow: EscrowRepositoryProtocol | None = None,
    ) -> None:
        self._repo: ProtocolRepositoryProtocol = repo or ProtocolRepository()
        self._escrow: EscrowRepositoryProtocol = escrow or EscrowRepository()

    async def bootstrap(
        self,
        db: AsyncSession,
        owner_id: str,
        oracle_id: str | None,
        minimum_stake: int,
        fee_percent: int,
    ) -> ProtocolConfig:
        """Create the config row on first start; an existing row is left untouched."""
        validate_principal("owner", owner_id)
        if oracle_id:
            validate_principal("oracle", oracle_id)
        validate_minimum_stake(minimum_stake)
        validate_fee_percent(fee_percent)
        try:
            config = await self._repo.insert_if_absent(
                db, owner_id, oracle_id or owner_id, minimum_stake, fee_percent
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        if config.owner_id != owner_id:
            logger.warning(
                "OWNER_ID setting (%s) differs from deployed owner (%s); deployed owner kept",
                owner_id,
                config.owner_id,
            )
        return config

    async def get_config(self, db: AsyncSession, caller: str) -> ProtocolConfigResponse:
        config = await load_config(self._repo, db)
        return ProtocolConfigResponse.from_domain(
            config, [role.value for role in roles_of(config, caller)]
        )

    async def set_oracle_address(
        self, db: AsyncSession, caller: str, oracle_id: str
    ) -> ProtocolConfigResponse:
        try:
            config = await load_config(self._repo, db, for_update=True)
            require_owner(config, caller)
            validate_principal("oracle", oracle_id)
            updated = await self._repo.set_oracle(db, oracle_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Oracle changed: %s -> %s (by %s)", config.oracle_id, oracle_id, caller)
        return ProtocolConfigResponse.from_domain(
            updated, [role.value for role in roles_of(updated, caller)]
        )

    async def set_minimum_stake(
        self, db: AsyncSession, caller: str, minimum_stake: int
    ) -> ProtocolConfigResponse:
        try:
            config = await load_config(self._repo, db, for_update=True)
            require_owner(config, caller)
            validate_minimum_stake(minimum_stake)
            updated = await self._repo.set_minimum_stake(db, minimum_stake)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Minimum stake changed: %d -> %d", config.minimum_stake, minimum_stake)
        return ProtocolConfigResponse.from_domain(
            updated, [role.value for role in roles_of(updated, caller)]
        )

    async def set_fee_percentage(
        self, db: AsyncSession, caller: str, fee_percent: int
    ) -> ProtocolConfigResponse:
        try:
            config = await load_config(self._repo, db, for_update=True)
            require_owner(config, caller)
            validate_fee_percent(fee_percent)
            updated = await self._repo.set_fee_percent(db, fee_percent)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Fee percent changed: %d -> %d", config.fee_percent, fee_percent)
        return ProtocolConfigResponse.from_domain(
            updated, [role.value for role in roles_of(updated, caller)]
        )

    async def withdraw_fees(
        self, db: AsyncSession, caller: str, amount: int
    ) -> WithdrawFeesResponse:
        """Move `amount` from the pool to the owner.

        Only the total pool balance is checked: collateral still owed to
        unclaimed winners is not reserved and can be withdrawn.
        """
        try:
            config = await load_config(self._repo, db, for_update=True)
            require_owner(config, caller)
            if amount <= 0:
                raise InvalidParameterError(f"withdraw amount must be > 0, got {amount}")
            pool_balance = await self._escrow.balance_of(db, POOL_ACCOUNT_ID)
            if amount > pool_balance:
                raise InsufficientBalanceError(amount, pool_balance)
            receipt = await self._escrow.transfer(
                db,
                amount,
                POOL_ACCOUNT_ID,
                config.owner_id,
                LedgerEntryType.FEE_WITHDRAWAL,
                "FEE_WITHDRAWAL",
                config.owner_id,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Fees withdrawn: amount=%d to=%s", amount, config.owner_id)
        return WithdrawFeesResponse(
            withdrawn=amount,
            recipient=config.owner_id,
            pool_balance=receipt.debit.balance_after,
        )
