"""Pydantic schemas for pm_market API.

Cursor format (BIGINT PK, allocated in increasing order):
  {"id": <last market id>} encoded as Base64 JSON string; pages walk id DESC.
"""

import base64
import json
from datetime import datetime

from pydantic import BaseModel, Field

from src.pm_market.domain.models import Market
from src.pm_settlement.domain.payout import winning_direction

# ---------------------------------------------------------------------------
# Cursor utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode the last market id of a page into an opaque cursor."""
    return base64.b64encode(json.dumps({"id": last_id}).encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except Exception:
        return None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateMarketRequest(BaseModel):
    start_price: int = Field(..., description="Reference price at creation, must be > 0")
    start_block: int = Field(..., ge=0)
    end_block: int = Field(..., ge=0, description="Exclusive end of the staking window")


class ResolveMarketRequest(BaseModel):
    end_price: int = Field(..., description="Terminal price supplied by the oracle, must be > 0")


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt is not None else None


class MarketDetail(BaseModel):
    id: int
    start_price: int
    end_price: int
    total_up_stake: int
    total_down_stake: int
    total_stake: int
    start_block: int
    end_block: int
    resolved: bool
    winning_direction: str | None
    created_by: str
    resolved_by: str | None
    resolved_at: str | None
    created_at: str | None

    @classmethod
    def from_domain(cls, m: Market) -> "MarketDetail":
        winner = winning_direction(m.start_price, m.end_price).value if m.resolved else None
        return cls(
            id=m.id,
            start_price=m.start_price,
            end_price=m.end_price,
            total_up_stake=m.total_up_stake,
            total_down_stake=m.total_down_stake,
            total_stake=m.total_stake,
            start_block=m.start_block,
            end_block=m.end_block,
            resolved=m.resolved,
            winning_direction=winner,
            created_by=m.created_by,
            resolved_by=m.resolved_by,
            resolved_at=_iso(m.resolved_at),
            created_at=_iso(m.created_at),
        )


class MarketListResponse(BaseModel):
    items: list[MarketDetail]
    next_cursor: str | None
    has_more: bool
