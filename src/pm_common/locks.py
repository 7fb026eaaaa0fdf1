"""Per-key asyncio locks.

Serialises read-modify-write sequences on the same market inside one process.
Cross-process safety comes from SELECT ... FOR UPDATE in the repositories.
A key's lock is dropped once no task holds or waits on it, so the table only
grows with the number of markets in flight.
"""

import asyncio
from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager


class KeyedLocks:
    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


_market_locks = KeyedLocks()


def get_market_locks() -> KeyedLocks:
    return _market_locks
