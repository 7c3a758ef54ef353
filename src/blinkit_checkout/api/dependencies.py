"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from redis.asyncio import ConnectionPool, Redis

from blinkit_checkout.services.orchestrator import CheckoutOrchestrator
from blinkit_checkout.storage.database import is_initialized
from blinkit_checkout.storage.session_repository import SessionRepository
from blinkit_checkout.utils.config import get_settings
from blinkit_checkout.utils.logging import get_logger


logger = get_logger(__name__)

# Global service instances (singleton pattern)
_orchestrator: CheckoutOrchestrator | None = None
_redis_pool: ConnectionPool | None = None
_redis_client: Redis | None = None


async def get_redis() -> Redis:
    """
    Get async Redis client with connection pooling.

    Pool configuration is controlled via CACHE_REDIS_POOL_SIZE and
    CACHE_REDIS_POOL_TIMEOUT environment variables.
    """
    global _redis_pool, _redis_client  # noqa: PLW0603

    if _redis_client is None:
        cache_settings = get_settings().cache

        _redis_pool = ConnectionPool.from_url(
            cache_settings.redis_url,
            max_connections=cache_settings.redis_pool_size,
            socket_timeout=cache_settings.redis_pool_timeout,
            decode_responses=True,
        )
        _redis_client = Redis(connection_pool=_redis_pool)

        logger.info(
            "Redis connection pool initialized",
            pool_size=cache_settings.redis_pool_size,
            url=cache_settings.redis_url.split("@")[-1],  # Hide credentials
        )

    return _redis_client


async def cleanup_redis() -> None:
    """Close Redis connection pool on shutdown."""
    global _redis_pool, _redis_client  # noqa: PLW0603

    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None

    if _redis_pool:
        await _redis_pool.disconnect()
        _redis_pool = None
        logger.info("Redis connection pool closed")


async def get_orchestrator() -> CheckoutOrchestrator:
    """Get or create the checkout orchestrator."""
    global _orchestrator  # noqa: PLW0603
    if _orchestrator is None:
        settings = get_settings()
        redis = await get_redis()
        durable = SessionRepository() if is_initialized() else None
        _orchestrator = CheckoutOrchestrator.from_settings(
            settings, redis=redis, durable=durable
        )
        logger.info("Checkout orchestrator created", durable_tier=durable is not None)
    return _orchestrator


async def cleanup_orchestrator() -> None:
    """Close every live browser on shutdown."""
    global _orchestrator  # noqa: PLW0603
    if _orchestrator:
        await _orchestrator.shutdown()
        _orchestrator = None


# Type aliases for dependency injection
OrchestratorDep = Annotated[CheckoutOrchestrator, Depends(get_orchestrator)]
RedisDep = Annotated[Redis, Depends(get_redis)]
