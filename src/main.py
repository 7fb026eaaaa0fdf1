"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.pm_common.database import async_session_factory, engine
from src.pm_common.errors import AppError
from src.pm_common.redis_client import close_redis, get_redis
from src.pm_common.response import error_response
from src.pm_escrow.api.router import router as escrow_router
from src.pm_gateway.middleware.request_log import RequestLogMiddleware
from src.pm_market.api.router import router as market_router
from src.pm_prediction.api.router import router as prediction_router
from src.pm_protocol.api.router import router as protocol_router
from src.pm_protocol.application.service import ProtocolAdminService
from src.pm_settlement.api.router import router as settlement_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis, bootstrap protocol config. Shutdown: dispose."""
    # Startup
    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s %(message)s")
    logging.getLogger("src").setLevel(settings.LOG_LEVEL)
    logging.getLogger("pm").setLevel(settings.LOG_LEVEL)
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()
    async with async_session_factory() as session:
        config = await ProtocolAdminService().bootstrap(
            session,
            settings.OWNER_ID,
            settings.DEFAULT_ORACLE_ID,
            settings.DEFAULT_MINIMUM_STAKE,
            settings.DEFAULT_FEE_PERCENT,
        )
    logger.info(
        "Protocol ready: owner=%s oracle=%s minimum_stake=%d fee=%d%%",
        config.owner_id, config.oracle_id, config.minimum_stake, config.fee_percent,
    )
    yield
    # Shutdown
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(market_router, prefix="/api/v1")
app.include_router(prediction_router, prefix="/api/v1")
app.include_router(settlement_router, prefix="/api/v1")
app.include_router(protocol_router, prefix="/api/v1")
app.include_router(escrow_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
