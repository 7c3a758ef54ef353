"""Durable session tier: upsert and lookup of session documents."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select

from blinkit_checkout.exceptions import PersistenceSoftFailure
from blinkit_checkout.storage.database import get_session
from blinkit_checkout.storage.models import CheckoutSession
from blinkit_checkout.utils.logging import get_logger


logger = get_logger(__name__)


class SessionRepository:
    """Persists session documents to PostgreSQL, one row per session id."""

    async def upsert(self, session_id: str, document: dict[str, Any]) -> None:
        """
        Insert or replace the document stored for ``session_id``.

        Raises:
            PersistenceSoftFailure: On any database error
        """
        try:
            async with get_session() as session:
                result = await session.execute(
                    select(CheckoutSession).where(
                        CheckoutSession.session_id == session_id
                    )
                )
                row = result.scalar_one_or_none()
                if row is None:
                    row = CheckoutSession(session_id=session_id)
                    session.add(row)
                row.phone_number = document.get("phone_number", "")
                row.state = document.get("state", "anonymous")
                row.is_verified = bool(document.get("is_verified", False))
                row.document = {**document, "session_id": session_id}
        except Exception as e:
            raise PersistenceSoftFailure(f"Upsert of {session_id} failed: {e}") from e

        logger.debug("Session upserted to DB", session_id=session_id)

    async def find_one(self, session_id: str) -> dict[str, Any] | None:
        """
        Return the stored document, or None if there is no row.

        Raises:
            PersistenceSoftFailure: On any database error
        """
        try:
            async with get_session() as session:
                result = await session.execute(
                    select(CheckoutSession).where(
                        CheckoutSession.session_id == session_id
                    )
                )
                row = result.scalar_one_or_none()
        except Exception as e:
            raise PersistenceSoftFailure(f"Lookup of {session_id} failed: {e}") from e

        if row is None:
            return None
        return dict(row.document)
