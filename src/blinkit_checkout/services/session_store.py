"""Two-tier persistence for checkout session records."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Protocol

from blinkit_checkout.exceptions import CacheError, PersistenceSoftFailure
from blinkit_checkout.models.session import SessionRecord
from blinkit_checkout.utils.logging import get_logger


if TYPE_CHECKING:
    from blinkit_checkout.services.cache import SessionCache

logger = get_logger(__name__)


class DurableTier(Protocol):
    """Persistent document store keyed by session id."""

    async def upsert(self, session_id: str, document: dict[str, Any]) -> None:
        """Insert or replace a document."""

    async def find_one(self, session_id: str) -> dict[str, Any] | None:
        """Return the document or None."""


class SessionStore:
    """
    Session records in Redis (TTL) backed by an optional durable tier.

    ``save`` always writes both tiers: the cache write must succeed, the
    durable write is best effort. ``get`` reads the cache first and falls
    back to the durable tier, writing a found record back to the cache.
    """

    def __init__(self, cache: SessionCache, durable: DurableTier | None = None) -> None:
        self._cache = cache
        self._durable = durable

    async def save(self, session_id: str, record: SessionRecord) -> SessionRecord:
        """
        Persist a record and refresh its timestamps.

        Raises:
            CacheError: If the cache tier write fails
        """
        now = datetime.now(timezone.utc)
        if record.created_at is None:
            record.created_at = now
        record.updated_at = now

        data = record.to_dict()
        await self._cache.set(session_id, data)

        if self._durable is not None:
            try:
                await self._durable.upsert(session_id, data)
            except PersistenceSoftFailure as e:
                logger.warning(
                    "Durable session write failed",
                    session_id=session_id,
                    error=str(e),
                )

        logger.debug("Session saved", session_id=session_id, state=record.state.value)
        return record

    async def get(self, session_id: str) -> SessionRecord | None:
        """Return the record from cache or durable tier, or None if absent."""
        cached = await self._cache.get(session_id)
        if cached is not None:
            return SessionRecord.from_dict(cached)

        if self._durable is None:
            return None

        logger.info("Session not in cache, trying durable tier", session_id=session_id)
        try:
            document = await self._durable.find_one(session_id)
        except PersistenceSoftFailure as e:
            logger.warning(
                "Durable session read failed",
                session_id=session_id,
                error=str(e),
            )
            return None
        if document is None:
            return None

        record = SessionRecord.from_dict(document)
        try:
            await self._cache.set(session_id, record.to_dict())
        except CacheError as e:
            logger.warning("Cache write-back failed", session_id=session_id, error=str(e))
        logger.info("Session restored from durable tier", session_id=session_id)
        return record
