"""Per-session mutual exclusion for automation calls."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from blinkit_checkout.utils.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger(__name__)


class SessionLocks:
    """
    One ``asyncio.Lock`` per session id, created on demand.

    Two calls against the same session would otherwise drive the same tab
    at once. Locks are reference counted and dropped once nobody holds or
    waits on them, so the registry does not grow with finished sessions.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._refs: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, session_id: str) -> AsyncIterator[None]:
        """Hold the session's lock for the duration of the block."""
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._refs[session_id] = self._refs.get(session_id, 0) + 1
        if lock.locked():
            logger.debug("Waiting for in-flight operation", session_id=session_id)
        try:
            async with lock:
                yield
        finally:
            self._refs[session_id] -= 1
            if self._refs[session_id] == 0:
                del self._refs[session_id]
                del self._locks[session_id]

    def is_locked(self, session_id: str) -> bool:
        """Check whether an operation is in flight for ``session_id``."""
        lock = self._locks.get(session_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
