"""Redis-based cache tier for session records."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from blinkit_checkout.exceptions import CacheError
from blinkit_checkout.utils.constants import SESSION_KEY_PREFIX, SESSION_TTL_SECONDS
from blinkit_checkout.utils.logging import get_logger


if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = get_logger(__name__)


class SessionCache:
    """
    Redis-based cache for session records.

    Reads degrade to a miss on Redis errors so the durable tier can answer;
    writes raise, because a record that never reached the cache cannot be
    resumed within the TTL window.
    """

    _KEY_PREFIX = SESSION_KEY_PREFIX

    def __init__(self, redis: Redis, ttl_seconds: int = SESSION_TTL_SECONDS) -> None:
        """
        Initialize session cache.

        Args:
            redis: Async Redis client with connection pool
            ttl_seconds: Time-to-live for cached sessions (default: 1 hour)
        """
        self._redis = redis
        self._ttl = ttl_seconds

    @property
    def ttl(self) -> int:
        """Default TTL in seconds."""
        return self._ttl

    def _make_key(self, session_id: str) -> str:
        """Generate cache key for a session."""
        return f"{self._KEY_PREFIX}:{session_id}"

    async def get(self, session_id: str) -> dict[str, Any] | None:
        """
        Get cached session data.

        Returns:
            Cached record dict or None if not cached/expired/unreachable
        """
        key = self._make_key(session_id)
        try:
            data = await self._redis.get(key)
        except Exception as e:
            logger.warning(f"Cache get error: {e}", key=key)
            return None
        if data:
            logger.debug(f"Cache HIT: {key}")
            return json.loads(data)
        logger.debug(f"Cache MISS: {key}")
        return None

    async def set(
        self,
        session_id: str,
        data: dict[str, Any],
        ttl: int | None = None,
    ) -> None:
        """
        Cache session data with a TTL.

        Raises:
            CacheError: If Redis rejects the write
        """
        key = self._make_key(session_id)
        ttl_seconds = ttl or self._ttl

        try:
            await self._redis.setex(key, ttl_seconds, json.dumps(data))
        except Exception as e:
            logger.error(f"Cache set error: {e}", key=key)
            raise CacheError(f"Could not cache session {session_id}") from e
        logger.debug(f"Cache SET: {key} (TTL: {ttl_seconds}s)")

    async def ping(self) -> bool:
        """Check Redis reachability."""
        try:
            return bool(await self._redis.ping())
        except Exception:
            return False
