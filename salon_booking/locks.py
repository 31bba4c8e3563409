"""
Per-key asyncio locks that are dropped once nobody holds or awaits them.

Used for per-customer turn serialisation and per-slot booking
reservation. A key's lock lives only while at least one coroutine is
inside or queued on ``hold(key)``, so the table does not grow with the
number of distinct keys ever seen.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Hashable


class KeyedLock:
    """One ``asyncio.Lock`` per key, reference-counted by its users."""

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        """Run the body with exclusive access to ``key``."""
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        # counted before the first await so a queued waiter keeps the lock alive
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def is_held(self, key: Hashable) -> bool:
        """True while any coroutine holds or waits for ``key``."""
        return key in self._users

    def __len__(self) -> int:
        return len(self._locks)
