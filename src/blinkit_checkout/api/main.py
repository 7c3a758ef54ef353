"""FastAPI application factory and configuration."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from blinkit_checkout import __version__
from blinkit_checkout.api.dependencies import (
    cleanup_orchestrator,
    cleanup_redis,
    get_orchestrator,
)
from blinkit_checkout.api.routes import checkout_router, health_router
from blinkit_checkout.storage.database import close_db, init_db
from blinkit_checkout.utils.config import get_settings
from blinkit_checkout.utils.logging import get_logger, setup_logging


if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    settings = get_settings()
    setup_logging(level=settings.log_level, json_format=settings.log_json)
    logger.info(
        "Starting Blinkit Checkout API",
        version=__version__,
        env=settings.env,
        debug=settings.debug,
    )

    # Log security warnings for production
    security_warnings = settings.get_security_warnings()
    if security_warnings:
        logger.warning(
            "SECURITY WARNINGS DETECTED",
            environment=settings.env,
            warnings=security_warnings,
        )
        for warning in security_warnings:
            logger.warning(f"[SECURITY] {warning}")

    # Durable tier is optional; the service runs on the cache tier alone
    if settings.database.enabled:
        try:
            await init_db(settings.database.url)
        except Exception as e:
            logger.warning(f"Durable tier unavailable, continuing without it: {e}")

    orchestrator = await get_orchestrator()
    await orchestrator.start()
    logger.info(
        "Browser pool ready",
        max_handles=settings.pool.max_handles,
        idle_timeout=settings.pool.idle_timeout_seconds,
    )

    yield

    # Shutdown
    logger.info("Shutting down Blinkit Checkout API")
    await cleanup_orchestrator()
    await close_db()
    await cleanup_redis()


def setup_cors(app: FastAPI) -> None:
    """Setup CORS middleware based on configuration."""
    cors_config = get_settings().cors

    if not cors_config.enabled:
        logger.info("CORS is DISABLED")
        return

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_config.get_origins_list(),
        allow_methods=cors_config.get_methods_list(),
        allow_headers=["*"],
    )

    logger.info(
        "CORS ENABLED",
        origins=cors_config.allow_origins,
        methods=cors_config.allow_methods,
    )


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Blinkit Checkout API",
        description=f"""
## Session-bound checkout automation for Blinkit

### Flow
1. **Login**: submit a phone number, receive a `session_id`
2. **Verify**: submit the 4-digit OTP for that session
3. **Cart**: add products by URL and variant, read back the cart

Each session drives one live browser. The browser is closed after the
cart step, so a session supports a single cart population.

### Environment
Running in **{settings.env}** mode.
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
        debug=settings.debug,
    )

    setup_cors(app)

    @app.exception_handler(Exception)
    async def global_exception_handler(
        _request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle uncaught exceptions."""
        # In production, hide error details
        if settings.is_production and not settings.debug:
            error_detail = "An unexpected error occurred"
        else:
            error_detail = str(exc)
        logger.error("Unhandled exception", error=str(exc), exc_info=True)

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": "Internal server error",
                "message": error_detail,
            },
        )

    app.include_router(checkout_router, prefix="/api/v1")
    app.include_router(health_router)  # Health last

    return app


# Application instance
app = create_app()
