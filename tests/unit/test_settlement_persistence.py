"""Unit tests for SettlementRepository using MagicMock AsyncSession."""

from unittest.mock import AsyncMock, MagicMock

from src.pm_settlement.infrastructure.persistence import SettlementRepository


def _row(market_id: int, total_stake: int, disbursed: int, claims: int) -> MagicMock:
    row = MagicMock()
    row.market_id = market_id
    row.total_stake = total_stake
    row.disbursed = disbursed
    row.claims = claims
    return row


async def test_maps_rows_and_binds_market_filter() -> None:
    db = MagicMock()
    result = MagicMock()
    result.fetchall.return_value = [_row(0, 4_000_000, 4_000_000, 1), _row(1, 10, 0, 0)]
    db.execute = AsyncMock(return_value=result)

    rows = await SettlementRepository().get_disbursements(db)

    assert [r.market_id for r in rows] == [0, 1]
    assert rows[0].disbursed == 4_000_000
    assert db.execute.call_args.args[1] == {"market_id": None}


async def test_single_market() -> None:
    db = MagicMock()
    result = MagicMock()
    result.fetchall.return_value = []
    db.execute = AsyncMock(return_value=result)

    assert await SettlementRepository().get_disbursements(db, 3) == []
    assert db.execute.call_args.args[1] == {"market_id": 3}


async def test_out_of_range_market_has_no_rows() -> None:
    db = MagicMock()
    db.execute = AsyncMock()

    assert await SettlementRepository().get_disbursements(db, 2**63) == []
    db.execute.assert_not_awaited()
