"""Bounded in-process registry of live browser handles."""

from __future__ import annotations

import asyncio
import contextlib
import time
from contextlib import asynccontextmanager, contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from blinkit_checkout.exceptions import PoolCapacityError
from blinkit_checkout.utils.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

    from blinkit_checkout.core.browser import BrowserManager

logger = get_logger(__name__)


@dataclass
class BrowserHandle:
    """
    Exclusive ownership of one live browser for one session.

    Valid only inside this process and only until closed.
    """

    session_id: str
    browser: BrowserManager
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_used_at: float = field(default_factory=time.monotonic)
    busy: bool = False

    @contextmanager
    def in_use(self) -> Iterator[BrowserHandle]:
        """Mark the handle busy so the idle reaper leaves it alone."""
        self.busy = True
        try:
            yield self
        finally:
            self.busy = False
            self.last_used_at = time.monotonic()

    def idle_for(self, now: float | None = None) -> float:
        """Seconds since the handle was last used."""
        return (now if now is not None else time.monotonic()) - self.last_used_at


class BrowserHandlePool:
    """
    Maps session ids to live browser handles.

    Features:
    - Fixed capacity with reject-style admission via ``reserve()``
    - Idempotent ``close()``
    - Background reaper that closes handles idle past a bound
    """

    def __init__(
        self,
        max_handles: int = 5,
        idle_timeout_seconds: float = 600,
        reap_interval_seconds: float = 60,
    ) -> None:
        self._max_handles = max_handles
        self._idle_timeout = idle_timeout_seconds
        self._reap_interval = reap_interval_seconds
        self._handles: dict[str, BrowserHandle] = {}
        self._reserved = 0
        self._running = False
        self._reaper_task: asyncio.Task[None] | None = None

    @property
    def size(self) -> int:
        """Number of registered handles."""
        return len(self._handles)

    @property
    def capacity(self) -> int:
        """Maximum number of live browsers."""
        return self._max_handles

    @property
    def session_ids(self) -> list[str]:
        """Ids with a registered handle."""
        return list(self._handles)

    @asynccontextmanager
    async def reserve(self) -> AsyncIterator[None]:
        """
        Hold a slot while a new browser is launched.

        Raises:
            PoolCapacityError: If registered handles plus in-flight
                launches already fill the pool
        """
        in_use = len(self._handles) + self._reserved
        if in_use >= self._max_handles:
            logger.warning(
                "Browser pool full, rejecting launch",
                in_use=in_use,
                capacity=self._max_handles,
            )
            raise PoolCapacityError(f"Browser pool full ({in_use}/{self._max_handles})")
        self._reserved += 1
        try:
            yield
        finally:
            self._reserved -= 1

    def save(self, session_id: str, handle: BrowserHandle) -> None:
        """Register a handle. A prior handle for the id is replaced, not closed."""
        if session_id in self._handles:
            logger.warning("Replacing registered browser handle", session_id=session_id)
        self._handles[session_id] = handle
        logger.debug("Browser handle registered", session_id=session_id, total=self.size)

    def get(self, session_id: str) -> BrowserHandle | None:
        """Return the live handle, or None if never created or already closed."""
        return self._handles.get(session_id)

    async def close(self, session_id: str) -> bool:
        """
        Release the browser and drop the entry.

        Returns:
            True if a handle was closed, False if there was none
        """
        handle = self._handles.pop(session_id, None)
        if handle is None:
            return False
        try:
            await handle.browser.close()
        except Exception as e:
            logger.warning("Browser close failed", session_id=session_id, error=str(e))
        logger.info("Browser handle closed", session_id=session_id, remaining=self.size)
        return True

    async def clear_all(self) -> None:
        """Close every registered handle."""
        for session_id in list(self._handles):
            await self.close(session_id)
        logger.info("Browser pool cleared")

    async def reap_idle(self, now: float | None = None) -> list[str]:
        """Close handles idle longer than the timeout and not in use."""
        expired = [
            session_id
            for session_id, handle in self._handles.items()
            if not handle.busy and handle.idle_for(now) > self._idle_timeout
        ]
        for session_id in expired:
            logger.info("Reaping idle browser handle", session_id=session_id)
            await self.close(session_id)
        return expired

    async def start(self) -> None:
        """Start the idle reaper."""
        if self._running:
            return
        self._running = True
        self._reaper_task = asyncio.create_task(self._reaper())
        logger.info(
            "Browser pool started",
            capacity=self._max_handles,
            idle_timeout=self._idle_timeout,
        )

    async def stop(self) -> None:
        """Stop the idle reaper and close every handle."""
        self._running = False
        if self._reaper_task:
            self._reaper_task.cancel()
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await self._reaper_task
            self._reaper_task = None
        await self.clear_all()
        logger.info("Browser pool stopped")

    async def _reaper(self) -> None:
        """Periodic idle-handle reaping."""
        while self._running:
            try:
                await asyncio.sleep(self._reap_interval)
                await self.reap_idle()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Reaper error: {e}")
