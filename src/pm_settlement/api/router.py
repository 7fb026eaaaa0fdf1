"""pm_settlement REST endpoints.

POST /markets/{market_id}/claim                      — claim winnings
GET  /markets/{market_id}/claim-quote/{participant}  — preview a claim
GET  /markets/{market_id}/audit                      — fund conservation, one market
GET  /admin/invariants                               — fund conservation, all markets
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_current_principal
from src.pm_settlement.application.service import SettlementApplicationService

router = APIRouter(tags=["settlement"])

_service = SettlementApplicationService()


def _wrap(data: dict[str, object], request: Request) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/markets/{market_id}/claim")
async def claim_winnings(
    market_id: int,
    request: Request,
    principal: Annotated[str, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.claim_winnings(db, principal, market_id)
    return _wrap(result.model_dump(), request)


@router.get("/markets/{market_id}/claim-quote/{participant}")
async def quote_claim(
    market_id: int,
    participant: str,
    request: Request,
    principal: Annotated[str, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.quote_claim(db, market_id, participant)
    return _wrap(result.model_dump(), request)


@router.get("/markets/{market_id}/audit")
async def audit_market(
    market_id: int,
    request: Request,
    principal: Annotated[str, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.audit_market(db, market_id)
    return _wrap(result.model_dump(), request)


@router.get("/admin/invariants")
async def audit_all(
    request: Request,
    principal: Annotated[str, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.audit_all(db)
    return _wrap(result.model_dump(), request)
