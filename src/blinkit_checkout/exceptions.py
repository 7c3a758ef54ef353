"""Custom exceptions for the Blinkit checkout automation service."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Stable error codes reported across the orchestrator boundary."""

    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    HANDLE_EXPIRED = "HANDLE_EXPIRED"
    INVALID_SESSION_STATE = "INVALID_SESSION_STATE"
    POOL_EXHAUSTED = "POOL_EXHAUSTED"
    AUTOMATION_STEP_FAILED = "AUTOMATION_STEP_FAILED"
    SCRAPE_PARSE_FAILURE = "SCRAPE_PARSE_FAILURE"


class CheckoutError(Exception):
    """Base exception for all checkout errors.

    ``user_message`` is safe to show to end users; ``str(exc)`` may carry
    internal detail and is only meant for logs.
    """

    code: ErrorCode = ErrorCode.AUTOMATION_STEP_FAILED
    user_message: str = "Something went wrong. Please try again."


# =============================================================================
# Session Errors
# =============================================================================


class SessionNotFoundError(CheckoutError):
    """Raised when no persisted record exists for a session id."""

    code = ErrorCode.SESSION_NOT_FOUND
    user_message = "Session not found. Please log in again."

    def __init__(self, session_id: str) -> None:
        super().__init__(f"No session record for {session_id}")
        self.session_id = session_id


class HandleExpiredError(CheckoutError):
    """Raised when the session record exists but its live browser is gone."""

    code = ErrorCode.HANDLE_EXPIRED
    user_message = "Session expired or browser closed. Please log in again."

    def __init__(self, session_id: str) -> None:
        super().__init__(f"No live browser handle for {session_id}")
        self.session_id = session_id


class InvalidSessionStateError(CheckoutError):
    """Raised when an operation is attempted from the wrong workflow state."""

    code = ErrorCode.INVALID_SESSION_STATE

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Cannot move session from {current} to {target}")
        self.current = current
        self.target = target
        self.user_message = f"This step is not allowed while the session is {current}."


class PoolCapacityError(CheckoutError):
    """Raised when the browser pool has no free slot for a new login."""

    code = ErrorCode.POOL_EXHAUSTED
    user_message = "Too many active checkouts right now. Please try again shortly."


# =============================================================================
# Automation Errors
# =============================================================================


class AutomationStepFailedError(CheckoutError):
    """Raised when a browser interaction fails or times out."""

    code = ErrorCode.AUTOMATION_STEP_FAILED

    def __init__(self, reason: str, user_message: str | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        if user_message:
            self.user_message = user_message


class ScrapeParseError(CheckoutError):
    """Raised when the cart page does not match the expected structure."""

    code = ErrorCode.SCRAPE_PARSE_FAILURE
    user_message = "Could not read the cart contents. Please try again."


# =============================================================================
# Browser Errors
# =============================================================================


class BrowserError(Exception):
    """Base exception for engine-level browser errors."""

    pass


class BrowserNotInitializedError(BrowserError):
    """Raised when browser is accessed before initialization."""

    pass


class NavigationError(BrowserError):
    """Raised when page navigation fails."""

    pass


class ElementNotFoundError(BrowserError):
    """Raised when a selector or text does not resolve to an element."""

    pass


class AutomationTimeoutError(BrowserError):
    """Raised when a browser interaction exceeds its time bound."""

    pass


# =============================================================================
# Persistence Errors
# =============================================================================


class CacheError(Exception):
    """Raised when cache-tier operations fail."""

    pass


class PersistenceSoftFailure(Exception):
    """Raised by the durable tier; logged by the session store, never surfaced."""

    pass


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(Exception):
    """Raised when configuration is invalid."""

    pass
