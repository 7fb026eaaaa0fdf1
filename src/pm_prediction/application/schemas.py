"""Pydantic schemas for pm_prediction API.

direction is accepted as a free string so unknown values are reported as
InvalidPredictionError rather than a request validation failure.
"""

from pydantic import BaseModel, Field

from src.pm_prediction.domain.models import Prediction


class SubmitPredictionRequest(BaseModel):
    direction: str = Field(..., max_length=16, description="UP or DOWN")
    stake: int = Field(..., description="Collateral to lock, >= protocol minimum stake")


class PredictionResponse(BaseModel):
    market_id: int
    participant: str
    direction: str
    stake: int
    claimed: bool
    payout_amount: int | None
    fee_amount: int | None
    claimed_at: str | None

    @classmethod
    def from_domain(cls, p: Prediction) -> "PredictionResponse":
        return cls(
            market_id=p.market_id,
            participant=p.participant,
            direction=p.direction,
            stake=p.stake,
            claimed=p.claimed,
            payout_amount=p.payout_amount,
            fee_amount=p.fee_amount,
            claimed_at=p.claimed_at.isoformat() if p.claimed_at else None,
        )


class SubmitPredictionResponse(BaseModel):
    prediction: PredictionResponse
    replaced_previous: bool
    total_up_stake: int
    total_down_stake: int
