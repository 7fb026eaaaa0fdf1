"""pm_prediction REST endpoints.

POST /markets/{market_id}/predictions                 — stake on UP or DOWN
GET  /markets/{market_id}/predictions/{participant}   — read one prediction
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_chain.height import get_current_height
from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_current_principal
from src.pm_prediction.application.schemas import SubmitPredictionRequest
from src.pm_prediction.application.service import PredictionApplicationService

router = APIRouter(prefix="/markets", tags=["predictions"])

_service = PredictionApplicationService()


@router.post("/{market_id}/predictions")
async def submit_prediction(
    market_id: int,
    body: SubmitPredictionRequest,
    request: Request,
    principal: Annotated[str, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    height: Annotated[int, Depends(get_current_height)],
) -> ApiResponse:
    result = await _service.submit_prediction(
        db, principal, market_id, body.direction, body.stake, height
    )
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/{market_id}/predictions/{participant}")
async def get_user_prediction(
    market_id: int,
    participant: str,
    request: Request,
    principal: Annotated[str, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_user_prediction(db, market_id, participant)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
