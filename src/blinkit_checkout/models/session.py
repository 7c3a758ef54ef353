"""Persisted session record for a checkout workflow."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any


class WorkflowState(str, Enum):
    """Where a checkout session is in the login-and-purchase flow."""

    ANONYMOUS = "anonymous"
    OTP_REQUESTED = "otp_requested"
    VERIFIED = "verified"
    CART_POPULATED = "cart_populated"


_DATETIME_FIELDS = ("otp_expires_at", "created_at", "updated_at")


@dataclass
class SessionRecord:
    """
    Durable identity of one checkout workflow.

    Holds only what can be persisted: the live browser lives in the
    handle pool and is never part of this record.
    """

    session_id: str
    phone_number: str
    cookies: list[dict[str, Any]] = field(default_factory=list)
    dom_snapshot: str = ""
    current_url: str = ""
    state: WorkflowState = WorkflowState.ANONYMOUS
    is_verified: bool = False
    otp: str | None = None
    otp_expires_at: datetime | None = None
    cart: list[dict[str, Any]] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-safe dict (datetimes as ISO strings)."""
        data = asdict(self)
        data["state"] = self.state.value
        for name in _DATETIME_FIELDS:
            value = data[name]
            data[name] = value.isoformat() if value else None
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionRecord:
        """Build a record, re-hydrating datetimes and ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        for name in _DATETIME_FIELDS:
            value = values.get(name)
            if isinstance(value, str):
                values[name] = datetime.fromisoformat(value)
        if "state" in values:
            values["state"] = WorkflowState(values["state"])
        return cls(**values)
