"""Upstream credential model."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from ..base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class CredentialToken(Base):
    """One upstream auth token plus its rotation state.

    `is_active` is controlled by the operator; `is_valid` is set by probing
    the upstream. Only rows with both flags set are handed out, least
    recently used first.
    """

    __tablename__ = "tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(
        String(255),
        nullable=False,
        default="",
        comment="Operator-facing label",
    )

    token = Column(
        Text,
        nullable=False,
        unique=True,
        comment="Upstream auth token",
    )

    is_active = Column(
        Boolean,
        nullable=False,
        default=True,
        comment="Enabled by the operator",
    )

    is_valid = Column(
        Boolean,
        nullable=False,
        default=False,
        comment="Passed the last upstream probe",
    )

    last_used = Column(
        DateTime,
        nullable=True,
        index=True,
        comment="Last time the token was handed out",
    )

    created_at = Column(
        DateTime,
        nullable=False,
        default=_utcnow,
        comment="Record creation timestamp",
    )

    updated_at = Column(
        DateTime,
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        comment="Record update timestamp",
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "token": self.token,
            "is_active": bool(self.is_active),
            "is_valid": bool(self.is_valid),
            "last_used": self.last_used,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return (
            f"<CredentialToken(id={self.id}, name={self.name!r}, "
            f"active={self.is_active}, valid={self.is_valid})>"
        )
