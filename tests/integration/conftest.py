"""Integration-test fixtures.

Requires PostgreSQL + Redis reachable through DATABASE_URL / REDIS_URL with
migrations applied (alembic upgrade head), and PM_INTEGRATION=1.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session.
"""

import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from config.settings import settings
from src.main import app
from src.pm_common.database import async_session_factory
from src.pm_common.redis_client import get_redis
from src.pm_gateway.auth.jwt_handler import create_access_token
from src.pm_protocol.application.service import ProtocolAdminService


def pytest_collection_modifyitems(config, items):
    if os.environ.get("PM_INTEGRATION") == "1":
        return
    skip = pytest.mark.skip(reason="set PM_INTEGRATION=1 to run against PostgreSQL + Redis")
    for item in items:
        if "integration" in item.nodeid:
            item.add_marker(skip)


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client with the protocol config bootstrapped."""
    async with async_session_factory() as session:
        await ProtocolAdminService().bootstrap(
            session,
            settings.OWNER_ID,
            settings.DEFAULT_ORACLE_ID,
            settings.DEFAULT_MINIMUM_STAKE,
            settings.DEFAULT_FEE_PERCENT,
        )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def set_height():
    """Publish a chain height the way the chain follower does."""
    redis = await get_redis()

    async def _set(height: int) -> None:
        await redis.set(settings.CHAIN_HEIGHT_KEY, height)

    return _set


@pytest.fixture(scope="session")
def tokens() -> dict[str, dict[str, str]]:
    def header(principal: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(principal)}"}

    return {
        "owner": header(settings.OWNER_ID),
        "alice": header("it-alice"),
        "carol": header("it-carol"),
    }
