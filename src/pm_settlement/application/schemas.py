"""Pydantic schemas for pm_settlement API."""

from pydantic import BaseModel

from src.pm_settlement.domain.invariants import MarketDisbursement


class ClaimResponse(BaseModel):
    market_id: int
    participant: str
    winnings: int
    fee: int
    payout: int
    claimed_at: str | None


class ClaimQuoteResponse(BaseModel):
    market_id: int
    participant: str
    direction: str
    stake: int
    resolved: bool
    winning_direction: str | None
    is_winner: bool
    claimed: bool
    winnings: int | None
    fee: int | None
    payout: int | None


class MarketAuditItem(BaseModel):
    market_id: int
    total_stake: int
    disbursed: int
    claims: int

    @classmethod
    def from_domain(cls, d: MarketDisbursement) -> "MarketAuditItem":
        return cls(
            market_id=d.market_id,
            total_stake=d.total_stake,
            disbursed=d.disbursed,
            claims=d.claims,
        )


class AuditResponse(BaseModel):
    ok: bool
    markets_checked: int
    violations: list[str]
    markets: list[MarketAuditItem]
