"""Constants used throughout the checkout automation.

Selectors track Blinkit's current markup and will break when the site
changes; keep them in one place.
"""

from __future__ import annotations


# =============================================================================
# Storage
# =============================================================================

SESSION_KEY_PREFIX = "session"
SESSION_TTL_SECONDS = 3600

# =============================================================================
# Selectors
# =============================================================================

LOCATION_INPUT = 'input[placeholder="search delivery location" i]'
LOCATION_SUGGESTION = ".address-container-v1 > div:nth-child(1)"
LOGIN_TEXT = "Login"
PHONE_INPUT = '[data-test-id="phone-no-text-box"]'
CONTINUE_TEXT = "Continue"
OTP_INPUT = '[data-test-id="otp-text-box"]'

VARIANT_OPTION = "[class*='variant' i] div, [class*='Variant'] button"
ADD_TO_CART_TEXT = "ADD"
CART_BUTTON = "[class*='CartButton__Button']"

CART_ITEM = "[class*='DefaultProductCard__Container'], [class*='CartProduct__Container']"
CART_ITEM_NAME = "[class*='ProductTitle'], [class*='product-name']"
CART_ITEM_QUANTITY = "[class*='AddToCart__UpdatedButtonContainer'] span, [class*='quantity']"
CART_ITEM_PRICE = "[class*='Price'], [class*='price']"
CART_TOTAL = "[class*='CheckoutStrip__AmountContainer'], [class*='BillTotal'] [class*='amount']"

# =============================================================================
# Delays (in seconds)
# =============================================================================

SHORT_DELAY = 0.1  # Between OTP digits
POST_ACTION_DELAY = 1.5  # After opening a modal or drawer
PAGE_LOAD_DELAY = 2.0  # After location selection reloads the page

# =============================================================================
# Browser
# =============================================================================

BROWSER_ARGS = [
    "--no-first-run",
    "--no-default-browser-check",
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]
