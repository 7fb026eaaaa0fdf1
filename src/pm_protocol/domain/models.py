"""Domain models for pm_protocol — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime

MAX_FEE_PERCENT = 100


@dataclass
class ProtocolConfig:
    """Singleton protocol parameters (row id = 1)."""

    owner_id: str            # fixed at deployment
    oracle_id: str
    minimum_stake: int
    fee_percent: int         # 0..100, applied to gross winnings
    next_market_id: int
    updated_at: datetime | None = None
