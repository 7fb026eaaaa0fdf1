"""MarketApplicationService — market registry lifecycle.

create_market and resolve_market each run in one transaction owned here:
commit on success, rollback on any error. Resolution is serialised per market
with the shared keyed lock and a FOR UPDATE read of the market row.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.amounts import validate_bounded
from src.pm_common.errors import (
    AlreadyResolvedError,
    InvalidParameterError,
    MarketNotClosedError,
    MarketNotFoundError,
)
from src.pm_common.locks import KeyedLocks, get_market_locks
from src.pm_market.application.schemas import (
    MarketDetail,
    MarketListResponse,
    cursor_decode,
    cursor_encode,
)
from src.pm_market.domain.repository import MarketRepositoryProtocol
from src.pm_market.infrastructure.persistence import MarketRepository
from src.pm_protocol.application.service import load_config
from src.pm_protocol.domain.repository import ProtocolRepositoryProtocol
from src.pm_protocol.domain.roles import require_oracle, require_owner
from src.pm_protocol.infrastructure.persistence import ProtocolRepository

logger = logging.getLogger(__name__)


class MarketApplicationService:
    def __init__(
        self,
        repo: MarketRepositoryProtocol | None = None,
        protocol: ProtocolRepositoryProtocol | None = None,
        locks: KeyedLocks | None = None,
    ) -> None:
        self._repo: MarketRepositoryProtocol = repo or MarketRepository()
        self._protocol: ProtocolRepositoryProtocol = protocol or ProtocolRepository()
        self._locks = locks or get_market_locks()

    async def create_market(
        self,
        db: AsyncSession,
        caller: str,
        start_price: int,
        start_block: int,
        end_block: int,
    ) -> MarketDetail:
        try:
            config = await load_config(self._protocol, db, for_update=True)
            require_owner(config, caller)
            validate_bounded("start price", start_price)
            validate_bounded("start block", start_block, minimum=0)
            validate_bounded("end block", end_block, minimum=0)
            if end_block <= start_block:
                raise InvalidParameterError(
                    f"end block ({end_block}) must be greater than start block ({start_block})"
                )
            market_id = await self._protocol.allocate_market_id(db)
            market = await self._repo.insert_market(
                db, market_id, start_price, start_block, end_block, caller
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Market created: id=%d start_price=%d window=[%d, %d)",
            market.id, start_price, start_block, end_block,
        )
        return MarketDetail.from_domain(market)

    async def resolve_market(
        self,
        db: AsyncSession,
        caller: str,
        market_id: int,
        end_price: int,
        height: int,
    ) -> MarketDetail:
        async with self._locks.hold(market_id):
            try:
                config = await load_config(self._protocol, db)
                require_oracle(config, caller)
                market = await self._repo.get_market_by_id(db, market_id, for_update=True)
                if market is None:
                    raise MarketNotFoundError(market_id)
                if height < market.end_block:
                    raise MarketNotClosedError(market_id, height, market.end_block)
                if market.resolved:
                    raise AlreadyResolvedError(market_id)
                validate_bounded("end price", end_price)
                resolved = await self._repo.mark_resolved(
                    db, market_id, end_price, caller, datetime.now(UTC)
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        detail = MarketDetail.from_domain(resolved)
        logger.info(
            "Market resolved: id=%d start=%d end=%d winner=%s pool=%d",
            market_id, resolved.start_price, end_price,
            detail.winning_direction, resolved.total_stake,
        )
        return detail

    async def get_market(self, db: AsyncSession, market_id: int) -> MarketDetail:
        market = await self._repo.get_market_by_id(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        return MarketDetail.from_domain(market)

    async def list_markets(
        self,
        db: AsyncSession,
        resolved: bool | None,
        cursor: str | None,
        limit: int,
    ) -> MarketListResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without COUNT(*)
        markets = await self._repo.list_markets(db, resolved, cursor_id, limit + 1)
        has_more = len(markets) > limit
        page = markets[:limit]

        items = [MarketDetail.from_domain(m) for m in page]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return MarketListResponse(items=items, next_cursor=next_cursor, has_more=has_more)
