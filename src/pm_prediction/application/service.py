"""PredictionApplicationService — staking into an open market.

submit_prediction order of effects inside one transaction:
  1. market row locked (FOR UPDATE) under the per-market asyncio lock
  2. caller / window / direction / minimum-stake / balance checks
  3. escrow transfer caller -> pool
  4. prediction upsert, then the direction total is increased

A resubmission replaces the participant's row but the earlier stake stays in
the pool and in the market total (it is not offset). With
REJECT_DUPLICATE_PREDICTIONS enabled a resubmission is refused instead.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_common.enums import LedgerEntryType
from src.pm_common.errors import (
    InsufficientBalanceError,
    InvalidParameterError,
    InvalidPredictionError,
    MarketNotFoundError,
    PredictionNotFoundError,
)
from src.pm_common.locks import KeyedLocks, get_market_locks
from src.pm_escrow.domain.constants import POOL_ACCOUNT_ID, is_system_account
from src.pm_escrow.domain.repository import EscrowRepositoryProtocol
from src.pm_escrow.infrastructure.persistence import EscrowRepository
from src.pm_market.domain.repository import MarketRepositoryProtocol
from src.pm_market.infrastructure.persistence import MarketRepository
from src.pm_prediction.application.schemas import (
    PredictionResponse,
    SubmitPredictionResponse,
)
from src.pm_prediction.domain.repository import PredictionRepositoryProtocol
from src.pm_prediction.domain.rules import check_stake, check_window_open, parse_direction
from src.pm_prediction.infrastructure.persistence import PredictionRepository
from src.pm_protocol.application.service import load_config
from src.pm_protocol.domain.repository import ProtocolRepositoryProtocol
from src.pm_protocol.infrastructure.persistence import ProtocolRepository

logger = logging.getLogger(__name__)


class PredictionApplicationService:
    def __init__(
        self,
        repo: PredictionRepositoryProtocol | None = None,
        markets: MarketRepositoryProtocol | None = None,
        protocol: ProtocolRepositoryProtocol | None = None,
        escrow: EscrowRepositoryProtocol | None = None,
        locks: KeyedLocks | None = None,
        reject_duplicates: bool | None = None,
    ) -> None:
        self._repo: PredictionRepositoryProtocol = repo or PredictionRepository()
        self._markets: MarketRepositoryProtocol = markets or MarketRepository()
        self._protocol: ProtocolRepositoryProtocol = protocol or ProtocolRepository()
        self._escrow: EscrowRepositoryProtocol = escrow or EscrowRepository()
        self._locks = locks or get_market_locks()
        self._reject_duplicates = (
            settings.REJECT_DUPLICATE_PREDICTIONS if reject_duplicates is None else reject_duplicates
        )

    async def submit_prediction(
        self,
        db: AsyncSession,
        caller: str,
        market_id: int,
        direction: str,
        stake: int,
        height: int,
    ) -> SubmitPredictionResponse:
        async with self._locks.hold(market_id):
            try:
                if is_system_account(caller):
                    raise InvalidParameterError(f"{caller} is a system account and cannot stake")
                market = await self._markets.get_market_by_id(db, market_id, for_update=True)
                if market is None:
                    raise MarketNotFoundError(market_id)
                check_window_open(market, height)
                side = parse_direction(direction)

                config = await load_config(self._protocol, db)
                check_stake(stake, config.minimum_stake)

                available = await self._escrow.balance_of(db, caller)
                if available < stake:
                    raise InsufficientBalanceError(stake, available)

                previous = await self._repo.get_prediction(
                    db, market_id, caller, for_update=True
                )
                if previous is not None and self._reject_duplicates:
                    raise InvalidPredictionError(
                        f"{caller} already has a prediction in market {market_id}"
                    )

                await self._escrow.transfer(
                    db, stake, caller, POOL_ACCOUNT_ID,
                    LedgerEntryType.STAKE, "PREDICTION", f"{market_id}:{caller}",
                )
                prediction = await self._repo.upsert_prediction(
                    db, market_id, caller, side, stake
                )
                market = await self._markets.add_stake(db, market_id, side, stake)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        if previous is not None:
            logger.warning(
                "Prediction replaced without offset: market=%d participant=%s "
                "old=%s/%d new=%s/%d",
                market_id, caller, previous.direction, previous.stake, side.value, stake,
            )
        else:
            logger.info(
                "Prediction submitted: market=%d participant=%s %s/%d",
                market_id, caller, side.value, stake,
            )
        return SubmitPredictionResponse(
            prediction=PredictionResponse.from_domain(prediction),
            replaced_previous=previous is not None,
            total_up_stake=market.total_up_stake,
            total_down_stake=market.total_down_stake,
        )

    async def get_user_prediction(
        self, db: AsyncSession, market_id: int, participant: str
    ) -> PredictionResponse:
        prediction = await self._repo.get_prediction(db, market_id, participant)
        if prediction is None:
            raise PredictionNotFoundError(market_id, participant)
        return PredictionResponse.from_domain(prediction)
