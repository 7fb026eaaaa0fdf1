"""pm_escrow REST endpoints.

GET  /account/balance   — caller's collateral balance
POST /account/deposit   — simulated funding (dev / test networks)
GET  /pool/balance      — pooled collateral held for all markets
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_escrow.application.schemas import DepositRequest
from src.pm_escrow.application.service import EscrowApplicationService
from src.pm_gateway.auth.dependencies import get_current_principal

router = APIRouter(tags=["escrow"])

_service = EscrowApplicationService()


@router.get("/account/balance")
async def get_balance(
    principal: Annotated[str, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(db, principal)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/account/deposit")
async def deposit(
    body: DepositRequest,
    principal: Annotated[str, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.deposit(db, principal, body.amount)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/pool/balance")
async def get_pool_balance(
    principal: Annotated[str, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_pool_balance(db)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
