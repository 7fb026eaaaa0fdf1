"""SettlementApplicationService — claims on resolved markets.

claim_winnings order of effects inside one transaction:
  1. market read under the per-market asyncio lock, prediction row FOR UPDATE
  2. payout pool -> participant, fee pool -> owner (zero legs skipped)
  3. prediction marked claimed with the amounts paid

Any failure rolls the whole claim back, so the participant may retry.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import Direction, LedgerEntryType
from src.pm_common.errors import (
    AlreadyClaimedError,
    MarketNotFoundError,
    MarketNotResolvedError,
    NoWinningStakeError,
    NotAWinnerError,
    PredictionNotFoundError,
)
from src.pm_common.locks import KeyedLocks, get_market_locks
from src.pm_escrow.domain.constants import POOL_ACCOUNT_ID
from src.pm_escrow.domain.repository import EscrowRepositoryProtocol
from src.pm_escrow.infrastructure.persistence import EscrowRepository
from src.pm_market.domain.models import Market
from src.pm_market.domain.repository import MarketRepositoryProtocol
from src.pm_market.infrastructure.persistence import MarketRepository
from src.pm_prediction.domain.repository import PredictionRepositoryProtocol
from src.pm_prediction.infrastructure.persistence import PredictionRepository
from src.pm_protocol.application.service import load_config
from src.pm_protocol.domain.repository import ProtocolRepositoryProtocol
from src.pm_protocol.infrastructure.persistence import ProtocolRepository
from src.pm_settlement.application.schemas import (
    AuditResponse,
    ClaimQuoteResponse,
    ClaimResponse,
    MarketAuditItem,
)
from src.pm_settlement.domain.invariants import MarketDisbursement, check_fund_conservation
from src.pm_settlement.domain.payout import PayoutQuote, quote_payout, winning_direction
from src.pm_settlement.domain.repository import SettlementRepositoryProtocol
from src.pm_settlement.infrastructure.persistence import SettlementRepository

logger = logging.getLogger(__name__)


def _quote_for(market: Market, stake: int, winner: Direction, fee_percent: int) -> PayoutQuote:
    try:
        return quote_payout(
            stake, market.total_up_stake, market.total_down_stake, winner, fee_percent
        )
    except NoWinningStakeError:
        raise NoWinningStakeError(market.id) from None


class SettlementApplicationService:
    def __init__(
        self,
        predictions: PredictionRepositoryProtocol | None = None,
        markets: MarketRepositoryProtocol | None = None,
        protocol: ProtocolRepositoryProtocol | None = None,
        escrow: EscrowRepositoryProtocol | None = None,
        audit_repo: SettlementRepositoryProtocol | None = None,
        locks: KeyedLocks | None = None,
    ) -> None:
        self._predictions: PredictionRepositoryProtocol = predictions or PredictionRepository()
        self._markets: MarketRepositoryProtocol = markets or MarketRepository()
        self._protocol: ProtocolRepositoryProtocol = protocol or ProtocolRepository()
        self._escrow: EscrowRepositoryProtocol = escrow or EscrowRepository()
        self._audit_repo: SettlementRepositoryProtocol = audit_repo or SettlementRepository()
        self._locks = locks or get_market_locks()

    async def claim_winnings(
        self, db: AsyncSession, caller: str, market_id: int
    ) -> ClaimResponse:
        async with self._locks.hold(market_id):
            try:
                market = await self._markets.get_market_by_id(db, market_id)
                if market is None:
                    raise MarketNotFoundError(market_id)
                if not market.resolved:
                    raise MarketNotResolvedError(market_id)

                prediction = await self._predictions.get_prediction(
                    db, market_id, caller, for_update=True
                )
                if prediction is None:
                    raise PredictionNotFoundError(market_id, caller)
                if prediction.claimed:
                    raise AlreadyClaimedError(market_id, caller)

                winner = winning_direction(market.start_price, market.end_price)
                if prediction.direction != winner.value:
                    raise NotAWinnerError(market_id, caller)

                config = await load_config(self._protocol, db)
                quote = _quote_for(market, prediction.stake, winner, config.fee_percent)

                reference_id = f"{market_id}:{caller}"
                if quote.payout > 0:
                    await self._escrow.transfer(
                        db, quote.payout, POOL_ACCOUNT_ID, caller,
                        LedgerEntryType.PAYOUT, "CLAIM", reference_id,
                    )
                if quote.fee > 0:
                    await self._escrow.transfer(
                        db, quote.fee, POOL_ACCOUNT_ID, config.owner_id,
                        LedgerEntryType.FEE, "CLAIM", reference_id,
                    )
                claimed = await self._predictions.mark_claimed(
                    db, market_id, caller, quote.payout, quote.fee, datetime.now(UTC)
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Winnings claimed: market=%d participant=%s winnings=%d fee=%d payout=%d",
            market_id, caller, quote.winnings, quote.fee, quote.payout,
        )
        return ClaimResponse(
            market_id=market_id,
            participant=caller,
            winnings=quote.winnings,
            fee=quote.fee,
            payout=quote.payout,
            claimed_at=claimed.claimed_at.isoformat() if claimed.claimed_at else None,
        )

    async def quote_claim(
        self, db: AsyncSession, market_id: int, participant: str
    ) -> ClaimQuoteResponse:
        market = await self._markets.get_market_by_id(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        prediction = await self._predictions.get_prediction(db, market_id, participant)
        if prediction is None:
            raise PredictionNotFoundError(market_id, participant)

        winner: Direction | None = None
        quote: PayoutQuote | None = None
        if market.resolved:
            winner = winning_direction(market.start_price, market.end_price)
            if prediction.direction == winner.value:
                config = await load_config(self._protocol, db)
                quote = _quote_for(market, prediction.stake, winner, config.fee_percent)

        return ClaimQuoteResponse(
            market_id=market_id,
            participant=participant,
            direction=prediction.direction,
            stake=prediction.stake,
            resolved=market.resolved,
            winning_direction=winner.value if winner else None,
            is_winner=quote is not None,
            claimed=prediction.claimed,
            winnings=quote.winnings if quote else None,
            fee=quote.fee if quote else None,
            payout=quote.payout if quote else None,
        )

    async def audit_market(self, db: AsyncSession, market_id: int) -> AuditResponse:
        disbursements = await self._audit_repo.get_disbursements(db, market_id)
        if not disbursements:
            raise MarketNotFoundError(market_id)
        return self._build_audit(disbursements)

    async def audit_all(self, db: AsyncSession) -> AuditResponse:
        return self._build_audit(await self._audit_repo.get_disbursements(db))

    @staticmethod
    def _build_audit(disbursements: list[MarketDisbursement]) -> AuditResponse:
        violations = check_fund_conservation(disbursements)
        return AuditResponse(
            ok=not violations,
            markets_checked=len(disbursements),
            violations=violations,
            markets=[MarketAuditItem.from_domain(d) for d in disbursements],
        )
