"""Checkout orchestrator - public contract over the automation steps."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from blinkit_checkout.core.locks import SessionLocks
from blinkit_checkout.core.pool import BrowserHandlePool
from blinkit_checkout.exceptions import CheckoutError, ErrorCode
from blinkit_checkout.services.automation import AutomationSteps
from blinkit_checkout.services.cache import SessionCache
from blinkit_checkout.services.session_store import SessionStore
from blinkit_checkout.utils.logging import bind_session, get_logger


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from redis.asyncio import Redis

    from blinkit_checkout.models.cart import CartSummary, Product
    from blinkit_checkout.services.session_store import DurableTier
    from blinkit_checkout.utils.config import Settings

logger = get_logger(__name__)

T = TypeVar("T")

_GENERIC_FAILURE = "Something went wrong. Please try again."


@dataclass
class Outcome(Generic[T]):
    """Result of an orchestrator call: a value or a typed error."""

    ok: bool
    value: T | None = None
    error: ErrorCode | None = None
    message: str = "OK"

    @classmethod
    def success(cls, value: T | None = None) -> Outcome[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: ErrorCode, message: str) -> Outcome[T]:
        return cls(ok=False, error=error, message=message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for API responses (without the value)."""
        if self.ok:
            return {"success": True, "message": self.message}
        return {
            "success": False,
            "error": self.error.value if self.error else None,
            "message": self.message,
        }


class CheckoutOrchestrator:
    """
    Sequences the checkout steps and normalizes their outcomes.

    Calls for an existing session id are serialized through a per-session
    lock, so at most one automation operation drives a tab at a time.
    Failures come back as ``Outcome`` values carrying a short message;
    internal detail only goes to the logs.
    """

    def __init__(
        self,
        steps: AutomationSteps,
        pool: BrowserHandlePool,
        locks: SessionLocks | None = None,
    ) -> None:
        self._steps = steps
        self._pool = pool
        self._locks = locks or SessionLocks()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        redis: Redis,
        durable: DurableTier | None = None,
    ) -> CheckoutOrchestrator:
        """Wire store, pool and steps from application settings."""
        cache = SessionCache(redis=redis, ttl_seconds=settings.cache.session_ttl_seconds)
        store = SessionStore(cache=cache, durable=durable)
        pool = BrowserHandlePool(
            max_handles=settings.pool.max_handles,
            idle_timeout_seconds=settings.pool.idle_timeout_seconds,
            reap_interval_seconds=settings.pool.reap_interval_seconds,
        )
        steps = AutomationSteps(
            store=store,
            pool=pool,
            site=settings.site,
            browser_settings=settings.browser,
        )
        return cls(steps=steps, pool=pool)

    @property
    def pool(self) -> BrowserHandlePool:
        """The handle pool, for health reporting."""
        return self._pool

    async def start(self) -> None:
        """Start background maintenance (idle reaper)."""
        await self._pool.start()

    async def shutdown(self) -> None:
        """Stop the reaper and close every live browser."""
        await self._pool.stop()

    # =========================================================================
    # Public operations
    # =========================================================================

    async def request_login(self, phone_number: str) -> Outcome[str]:
        """Start a session and request an OTP; value is the session id."""
        return await self._run(
            "request_login", lambda: self._steps.request_login(phone_number)
        )

    async def verify_code(self, session_id: str, code: str) -> Outcome[None]:
        """Submit the OTP for a session."""
        async with self._locks.hold(session_id):
            with bind_session(session_id):
                return await self._run(
                    "verify_code", lambda: self._steps.verify_code(session_id, code)
                )

    async def populate_cart(
        self,
        session_id: str,
        products: Sequence[Product],
    ) -> Outcome[CartSummary]:
        """Add products to the cart and return the scraped summary."""
        async with self._locks.hold(session_id):
            with bind_session(session_id):
                return await self._run(
                    "populate_cart",
                    lambda: self._steps.populate_cart(session_id, products),
                )

    async def _run(
        self,
        operation: str,
        call: Callable[[], Awaitable[T]],
    ) -> Outcome[T]:
        try:
            value = await call()
        except CheckoutError as e:
            logger.warning(
                "Operation failed",
                operation=operation,
                code=e.code.value,
                reason=str(e),
            )
            return Outcome.failure(e.code, e.user_message)
        except Exception as e:
            logger.error(
                "Unexpected error",
                operation=operation,
                error=str(e),
                exc_info=True,
            )
            return Outcome.failure(ErrorCode.AUTOMATION_STEP_FAILED, _GENERIC_FAILURE)
        return Outcome.success(value)
