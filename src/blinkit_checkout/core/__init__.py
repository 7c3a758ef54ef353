"""Core module - Browser automation, handle pool and workflow state."""

from blinkit_checkout.core.browser import BrowserManager
from blinkit_checkout.core.locks import SessionLocks
from blinkit_checkout.core.pool import BrowserHandle, BrowserHandlePool
from blinkit_checkout.core.workflow import TRANSITIONS, can_transition, ensure_transition


__all__ = [
    "TRANSITIONS",
    "BrowserHandle",
    "BrowserHandlePool",
    "BrowserManager",
    "SessionLocks",
    "can_transition",
    "ensure_transition",
]
