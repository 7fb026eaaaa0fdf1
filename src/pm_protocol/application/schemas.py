"""Pydantic schemas for pm_protocol admin API.

Numeric bounds are enforced by the service (InvalidParameterError), not here,
so out-of-range values surface with the protocol's own error code.
"""

from pydantic import BaseModel, Field

from src.pm_protocol.domain.models import ProtocolConfig


class SetOracleRequest(BaseModel):
    oracle_id: str = Field(..., max_length=128, description="Principal allowed to resolve markets")


class SetMinimumStakeRequest(BaseModel):
    minimum_stake: int = Field(..., description="Must be > 0")


class SetFeePercentageRequest(BaseModel):
    fee_percent: int = Field(..., description="Must be within [0, 100]")


class WithdrawFeesRequest(BaseModel):
    amount: int = Field(..., description="Must be > 0 and <= pool balance")


class ProtocolConfigResponse(BaseModel):
    owner_id: str
    oracle_id: str
    minimum_stake: int
    fee_percent: int
    next_market_id: int
    caller_roles: list[str]

    @classmethod
    def from_domain(cls, config: ProtocolConfig, caller_roles: list[str]) -> "ProtocolConfigResponse":
        return cls(
            owner_id=config.owner_id,
            oracle_id=config.oracle_id,
            minimum_stake=config.minimum_stake,
            fee_percent=config.fee_percent,
            next_market_id=config.next_market_id,
            caller_roles=caller_roles,
        )


class WithdrawFeesResponse(BaseModel):
    withdrawn: int
    recipient: str
    pool_balance: int
