"""Utility modules."""

from blinkit_checkout.utils.config import Settings, get_settings
from blinkit_checkout.utils.constants import (
    SESSION_KEY_PREFIX,
    SESSION_TTL_SECONDS,
)
from blinkit_checkout.utils.logging import (
    bind_session,
    get_logger,
    mask_phone,
    setup_logging,
)
from blinkit_checkout.utils.parsers import parse_price, parse_quantity


__all__ = [
    "SESSION_KEY_PREFIX",
    "SESSION_TTL_SECONDS",
    "Settings",
    "bind_session",
    "get_logger",
    "get_settings",
    "mask_phone",
    "parse_price",
    "parse_quantity",
    "setup_logging",
]
