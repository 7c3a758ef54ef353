"""Durable storage for checkout session records."""

from blinkit_checkout.storage.database import close_db, get_session, init_db
from blinkit_checkout.storage.session_repository import SessionRepository


__all__ = [
    "SessionRepository",
    "close_db",
    "get_session",
    "init_db",
]
