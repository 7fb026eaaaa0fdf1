"""Chain height source.

The engine never keeps wall-clock time. Market windows are compared against
a monotonically non-decreasing block height that an external chain follower
writes into Redis under settings.CHAIN_HEIGHT_KEY.
"""

import logging
from typing import Protocol

from config.settings import settings
from src.pm_common.errors import HeightUnavailableError
from src.pm_common.redis_client import get_redis

logger = logging.getLogger(__name__)


class HeightSourceProtocol(Protocol):
    async def current_height(self) -> int: ...


class RedisHeightSource:
    """Reads the published height; never reports a value lower than one already seen."""

    def __init__(self, key: str | None = None) -> None:
        self._key = key or settings.CHAIN_HEIGHT_KEY
        self._last_seen = -1

    async def current_height(self) -> int:
        redis = await get_redis()
        raw = await redis.get(self._key)
        if raw is None:
            raise HeightUnavailableError(f"Chain height key {self._key!r} is not set")
        try:
            height = int(raw)
        except ValueError:
            raise HeightUnavailableError(
                f"Chain height key {self._key!r} holds a non-integer value"
            ) from None
        if height < 0:
            raise HeightUnavailableError(f"Chain height is negative: {height}")

        if height < self._last_seen:
            logger.warning(
                "Chain height went backwards: published=%d last_seen=%d", height, self._last_seen
            )
            return self._last_seen
        self._last_seen = height
        return height


_source: HeightSourceProtocol | None = None


def get_height_source() -> HeightSourceProtocol:
    global _source  # noqa: PLW0603
    if _source is None:
        _source = RedisHeightSource()
    return _source


async def get_current_height() -> int:
    """FastAPI dependency: current block height, read once per request."""
    return await get_height_source().current_height()
