"""SQLAlchemy models for the durable session tier."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Index, Integer, Text
from sqlalchemy.dialects.postgresql import JSON, TIMESTAMP
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CheckoutSession(Base):
    """Durable copy of a checkout session record, keyed by session id."""

    __tablename__ = "checkout_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    phone_number: Mapped[str] = mapped_column(Text, default="")
    state: Mapped[str] = mapped_column(Text, default="anonymous")
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    document: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (
        Index("ix_checkout_sessions_session_id", "session_id", unique=True),
        Index("ix_checkout_sessions_updated_at", "updated_at"),
    )
