"""
Blinkit Checkout - session-bound login, OTP and cart automation.

Usage:
    from blinkit_checkout import CheckoutOrchestrator

    orchestrator = CheckoutOrchestrator.from_settings(get_settings(), redis)
    login = await orchestrator.request_login("9999999999")
    await orchestrator.verify_code(login.value, "1234")
    cart = await orchestrator.populate_cart(login.value, products)
"""

__version__ = "0.1.0"

from blinkit_checkout.models.cart import CartSummary, Product
from blinkit_checkout.services.orchestrator import CheckoutOrchestrator, Outcome


__all__ = [
    "CartSummary",
    "CheckoutOrchestrator",
    "Outcome",
    "Product",
    "__version__",
]
