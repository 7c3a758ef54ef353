"""API routes package."""

from blinkit_checkout.api.routes.checkout import router as checkout_router
from blinkit_checkout.api.routes.health import router as health_router


__all__ = [
    "checkout_router",
    "health_router",
]
