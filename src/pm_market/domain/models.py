"""Domain models for pm_market — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Market:
    id: int
    start_price: int
    end_price: int                 # 0 until resolved
    total_up_stake: int
    total_down_stake: int
    start_block: int
    end_block: int                 # exclusive upper bound of the staking window
    resolved: bool
    created_by: str
    resolved_by: str | None
    resolved_at: datetime | None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def total_stake(self) -> int:
        return self.total_up_stake + self.total_down_stake

    def is_open_at(self, height: int) -> bool:
        return self.start_block <= height < self.end_block
