"""Pydantic schemas for pm_escrow API."""

from pydantic import BaseModel, Field


class DepositRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Collateral to credit, smallest unit")


class BalanceResponse(BaseModel):
    user_id: str
    balance: int


class DepositResponse(BaseModel):
    balance: int
    deposited: int
    ledger_entry_id: int


class PoolBalanceResponse(BaseModel):
    pool_account: str
    balance: int
