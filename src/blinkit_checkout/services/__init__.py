"""Service layer - session store, automation steps and orchestrator."""

from blinkit_checkout.services.automation import AutomationSteps, build_cart_summary
from blinkit_checkout.services.cache import SessionCache
from blinkit_checkout.services.orchestrator import CheckoutOrchestrator, Outcome
from blinkit_checkout.services.session_store import SessionStore


__all__ = [
    "AutomationSteps",
    "CheckoutOrchestrator",
    "Outcome",
    "SessionCache",
    "SessionStore",
    "build_cart_summary",
]
