# tests/unit/test_market_service.py
"""Unit tests for MarketApplicationService against in-memory repositories."""

import pytest

from src.pm_common.errors import (
    AlreadyResolvedError,
    InternalError,
    InvalidParameterError,
    MarketClosedError,
    MarketNotClosedError,
    MarketNotFoundError,
    UnauthorizedError,
)


class TestCreateMarket:
    async def test_owner_creates_zeroed_market(self, world) -> None:
        detail = await world.market_svc.create_market(world.db, world.owner, 50_000, 10, 20)

        assert detail.id == 0
        assert detail.start_price == 50_000
        assert detail.end_price == 0
        assert detail.total_up_stake == 0
        assert detail.total_down_stake == 0
        assert detail.resolved is False
        assert detail.winning_direction is None
        assert detail.created_by == world.owner
        assert world.db.commits == 1

    async def test_ids_are_sequential(self, world) -> None:
        ids = [
            (await world.market_svc.create_market(world.db, world.owner, 1, 0, 5)).id
            for _ in range(3)
        ]
        assert ids == [0, 1, 2]
        assert world.protocol.config.next_market_id == 3

    async def test_non_owner_rejected(self, world) -> None:
        with pytest.raises(UnauthorizedError):
            await world.market_svc.create_market(world.db, world.oracle, 50_000, 10, 20)
        assert world.markets.markets == {}
        assert world.db.rollbacks == 1

    @pytest.mark.parametrize(("start", "end"), [(20, 20), (20, 10)])
    async def test_window_must_be_non_empty(self, world, start: int, end: int) -> None:
        with pytest.raises(InvalidParameterError):
            await world.market_svc.create_market(world.db, world.owner, 50_000, start, end)
        assert world.protocol.config.next_market_id == 0

    async def test_start_price_must_be_positive(self, world) -> None:
        with pytest.raises(InvalidParameterError):
            await world.market_svc.create_market(world.db, world.owner, 0, 10, 20)

    @pytest.mark.parametrize(
        ("price", "start", "end"),
        [(2**63, 10, 20), (100, -1, 20), (100, 10, 2**63)],
    )
    async def test_values_must_fit_bigint(
        self, world, price: int, start: int, end: int
    ) -> None:
        with pytest.raises(InvalidParameterError):
            await world.market_svc.create_market(world.db, world.owner, price, start, end)
        assert world.markets.markets == {}
        assert world.protocol.config.next_market_id == 0

    async def test_missing_config_is_internal_error(self, world) -> None:
        world.protocol.config = None
        world.db.checkpoint()
        with pytest.raises(InternalError):
            await world.market_svc.create_market(world.db, world.owner, 1, 0, 5)


class TestResolveMarket:
    async def test_oracle_resolves_after_end(self, world) -> None:
        market_id = await world.open_market(start_price=50_000)

        detail = await world.market_svc.resolve_market(
            world.db, world.oracle, market_id, 60_000, 20
        )

        assert detail.resolved is True
        assert detail.end_price == 60_000
        assert detail.winning_direction == "UP"
        assert detail.resolved_by == world.oracle
        assert detail.resolved_at is not None

    async def test_non_oracle_rejected_before_anything_else(self, world) -> None:
        # even for a market that does not exist
        with pytest.raises(UnauthorizedError):
            await world.market_svc.resolve_market(world.db, world.owner, 99, 60_000, 100)

    async def test_missing_market(self, world) -> None:
        with pytest.raises(MarketNotFoundError):
            await world.market_svc.resolve_market(world.db, world.oracle, 99, 60_000, 100)

    async def test_before_end_block(self, world) -> None:
        market_id = await world.open_market(end_block=20)
        with pytest.raises(MarketNotClosedError) as exc_info:
            await world.market_svc.resolve_market(world.db, world.oracle, market_id, 60, 19)
        assert isinstance(exc_info.value, MarketClosedError)
        assert world.markets.markets[market_id].resolved is False

    async def test_second_resolution_rejected(self, world) -> None:
        market_id = await world.open_market()
        await world.resolve(market_id, 120)
        with pytest.raises(AlreadyResolvedError):
            await world.resolve(market_id, 80)
        assert world.markets.markets[market_id].end_price == 120

    async def test_end_price_must_be_positive(self, world) -> None:
        market_id = await world.open_market()
        with pytest.raises(InvalidParameterError):
            await world.resolve(market_id, 0)

    async def test_end_price_must_fit_bigint(self, world) -> None:
        market_id = await world.open_market()
        with pytest.raises(InvalidParameterError):
            await world.resolve(market_id, 2**63)
        assert world.markets.markets[market_id].resolved is False

    async def test_tie_reports_down(self, world) -> None:
        market_id = await world.open_market(start_price=100)
        detail = await world.resolve(market_id, 100)
        assert detail.winning_direction == "DOWN"


class TestReads:
    async def test_get_market(self, world) -> None:
        market_id = await world.open_market()
        detail = await world.market_svc.get_market(world.db, market_id)
        assert detail.id == market_id

    async def test_get_market_not_found(self, world) -> None:
        with pytest.raises(MarketNotFoundError):
            await world.market_svc.get_market(world.db, 42)

    async def test_list_paginates_newest_first(self, world) -> None:
        for _ in range(5):
            await world.open_market()

        first = await world.market_svc.list_markets(world.db, None, None, 2)
        assert [m.id for m in first.items] == [4, 3]
        assert first.has_more is True

        second = await world.market_svc.list_markets(world.db, None, first.next_cursor, 2)
        assert [m.id for m in second.items] == [2, 1]

        last = await world.market_svc.list_markets(world.db, None, second.next_cursor, 2)
        assert [m.id for m in last.items] == [0]
        assert last.has_more is False
        assert last.next_cursor is None

    async def test_list_filters_resolved(self, world) -> None:
        a = await world.open_market()
        await world.open_market()
        await world.resolve(a, 200)

        resolved = await world.market_svc.list_markets(world.db, True, None, 20)
        assert [m.id for m in resolved.items] == [a]
