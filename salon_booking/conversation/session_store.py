"""
In-memory session store keyed by customer identifier.

Sessions live for the lifetime of the process only. Turns for one
identifier run one at a time through ``turn()`` while different
customers run concurrently. Sessions left untouched for longer than
the idle timeout are evicted so abandoned chats do not accumulate.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from salon_booking.config import settings
from salon_booking.locks import KeyedLock
from salon_booking.schemas.session_schema import Session

logger = logging.getLogger(__name__)


class SessionStore:
    """One mutable ``Session`` per customer identifier."""

    def __init__(
        self,
        idle_timeout_sec: Optional[float] = settings.session_idle_sec,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sessions: dict[str, Session] = {}
        self._touched: dict[str, float] = {}
        self._turns = KeyedLock()
        self.idle_timeout_sec = idle_timeout_sec
        self._clock = clock

    def get(self, customer_id: str) -> Optional[Session]:
        return self._sessions.get(customer_id)

    def put(self, customer_id: str, session: Session) -> None:
        """Store ``session``, replacing any existing one for the id."""
        self._sessions[customer_id] = session
        self._touched[customer_id] = self._clock()

    def delete(self, customer_id: str) -> None:
        self._touched.pop(customer_id, None)
        if self._sessions.pop(customer_id, None) is not None:
            logger.debug("Session deleted for %s", customer_id)

    @asynccontextmanager
    async def turn(self, customer_id: str) -> AsyncIterator[None]:
        """Serialise the turns of ``customer_id``."""
        async with self._turns.hold(customer_id):
            yield

    def purge_idle(self) -> int:
        """
        Evict sessions idle for longer than ``idle_timeout_sec``.

        Sessions with a turn in progress or queued are kept.

        Returns:
            Number of sessions evicted.
        """
        if not self.idle_timeout_sec:
            return 0
        cutoff = self._clock() - self.idle_timeout_sec
        stale = [
            cid for cid, seen in self._touched.items()
            if seen < cutoff and not self._turns.is_held(cid)
        ]
        for cid in stale:
            self.delete(cid)
        if stale:
            logger.info("Evicted %d idle sessions", len(stale))
        return len(stale)

    @property
    def active_turns(self) -> int:
        """Customers with a turn running or queued."""
        return len(self._turns)

    def __contains__(self, customer_id: object) -> bool:
        return customer_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
