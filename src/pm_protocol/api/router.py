"""Admin REST API — protocol parameters.

GET  /admin/config           — current parameters + caller's roles
PUT  /admin/oracle           — owner only
PUT  /admin/minimum-stake    — owner only
PUT  /admin/fee-percentage   — owner only
POST /admin/withdraw-fees    — owner only
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_current_principal
from src.pm_protocol.application.schemas import (
    SetFeePercentageRequest,
    SetMinimumStakeRequest,
    SetOracleRequest,
    WithdrawFeesRequest,
)
from src.pm_protocol.application.service import ProtocolAdminService

router = APIRouter(prefix="/admin", tags=["admin"])

_service = ProtocolAdminService()


def _wrap(data: dict[str, object], request: Request) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/config")
async def get_config(
    principal: Annotated[str, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    result = await _service.get_config(db, principal)
    return _wrap(result.model_dump(), request)


@router.put("/oracle")
async def set_oracle_address(
    body: SetOracleRequest,
    principal: Annotated[str, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    result = await _service.set_oracle_address(db, principal, body.oracle_id)
    return _wrap(result.model_dump(), request)


@router.put("/minimum-stake")
async def set_minimum_stake(
    body: SetMinimumStakeRequest,
    principal: Annotated[str, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    result = await _service.set_minimum_stake(db, principal, body.minimum_stake)
    return _wrap(result.model_dump(), request)


@router.put("/fee-percentage")
async def set_fee_percentage(
    body: SetFeePercentageRequest,
    principal: Annotated[str, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    result = await _service.set_fee_percentage(db, principal, body.fee_percent)
    return _wrap(result.model_dump(), request)


@router.post("/withdraw-fees")
async def withdraw_fees(
    body: WithdrawFeesRequest,
    principal: Annotated[str, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    result = await _service.withdraw_fees(db, principal, body.amount)
    return _wrap(result.model_dump(), request)
