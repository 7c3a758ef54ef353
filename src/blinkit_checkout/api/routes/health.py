"""Health check endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from blinkit_checkout import __version__
from blinkit_checkout.api.dependencies import OrchestratorDep, RedisDep
from blinkit_checkout.api.schemas import HealthResponse
from blinkit_checkout.services.cache import SessionCache
from blinkit_checkout.storage.database import is_initialized


router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health",
    description="Cache reachability, durable tier status and browser pool usage.",
)
async def health_check(
    orchestrator: OrchestratorDep,
    redis: RedisDep,
) -> HealthResponse:
    """
    Return service health.

    Status is ``degraded`` when the cache tier cannot be reached, since
    no session can be saved without it.
    """
    cache_ok = await SessionCache(redis=redis).ping()
    pool = orchestrator.pool

    return HealthResponse(
        status="healthy" if cache_ok else "degraded",
        version=__version__,
        cache_reachable=cache_ok,
        durable_tier=is_initialized(),
        pool={
            "size": pool.size,
            "capacity": pool.capacity,
            "sessions": pool.session_ids,
        },
    )


@router.get(
    "/",
    summary="API root",
    description="API information and available endpoints.",
)
async def root() -> dict[str, Any]:
    """Return API info with links."""
    return {
        "name": "Blinkit Checkout API",
        "version": __version__,
        "links": {
            "self": "/",
            "health": "/health",
            "login": "/api/v1/checkout/login",
            "verify": "/api/v1/checkout/verify",
            "cart": "/api/v1/checkout/cart",
            "docs": "/docs",
        },
    }
