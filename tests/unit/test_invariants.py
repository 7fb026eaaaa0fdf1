"""Unit tests for the fund-conservation check."""

import logging

from src.pm_settlement.domain.invariants import MarketDisbursement, check_fund_conservation


def test_no_violation_when_within_pool() -> None:
    rows = [
        MarketDisbursement(market_id=0, total_stake=4_000_000, disbursed=4_000_000, claims=1),
        MarketDisbursement(market_id=1, total_stake=3_000_000, disbursed=0, claims=0),
    ]
    assert check_fund_conservation(rows) == []


def test_violation_reported_and_logged(caplog) -> None:
    rows = [MarketDisbursement(market_id=5, total_stake=100, disbursed=101, claims=2)]
    with caplog.at_level(logging.ERROR):
        violations = check_fund_conservation(rows)
    assert len(violations) == 1
    assert "market 5" in violations[0]
    assert "Fund conservation violated" in caplog.text
