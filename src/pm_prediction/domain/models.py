"""Domain models for pm_prediction — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Prediction:
    market_id: int
    participant: str
    direction: str                   # Direction value
    stake: int
    claimed: bool = False
    payout_amount: int | None = None  # set once, at claim
    fee_amount: int | None = None     # set once, at claim
    claimed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
