"""Durable store of upstream credentials with least-recently-used rotation."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ..core.exceptions import CredentialConflictError, CredentialUnavailableError
from ..database.base import DatabaseBase
from ..database.models import CredentialToken

logger = logging.getLogger("tagproxy")

MASK_THRESHOLD = 24
MASK_KEEP = 10


def mask_token(token: str) -> str:
    """Show only the first and last 10 characters of long tokens."""
    if len(token) <= MASK_THRESHOLD:
        return token
    return f"{token[:MASK_KEEP]}...{token[-MASK_KEEP:]}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class Credential:
    """Detached snapshot of a stored token."""

    id: int
    name: str
    token: str
    is_active: bool
    is_valid: bool
    last_used: Optional[datetime]
    created_at: datetime

    @classmethod
    def from_row(cls, row: CredentialToken) -> "Credential":
        return cls(
            id=row.id,
            name=row.name or "",
            token=row.token,
            is_active=bool(row.is_active),
            is_valid=bool(row.is_valid),
            last_used=row.last_used,
            created_at=row.created_at,
        )

    def to_public_dict(self) -> dict[str, Any]:
        """Admin view with the token masked."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "token": mask_token(self.token),
            "is_active": self.is_active,
            "is_valid": self.is_valid,
            "created_at": self.created_at.strftime("%Y-%m-%d %H:%M:%S"),
        }
        if self.last_used is not None:
            data["last_used"] = self.last_used.strftime("%Y-%m-%d %H:%M:%S")
        return data


class CredentialStore:
    """Credential CRUD plus "next usable token" selection.

    Methods are synchronous; async callers run them through
    `asyncio.to_thread`.
    """

    def __init__(self, database: DatabaseBase) -> None:
        self.database = database
        self.database.initialize()
        self._acquire_lock = threading.Lock()

    def _usable_query(self):
        return (
            select(CredentialToken)
            .where(CredentialToken.is_active.is_(True), CredentialToken.is_valid.is_(True))
            .order_by(
                CredentialToken.last_used.is_not(None),
                CredentialToken.last_used.asc(),
                CredentialToken.created_at.asc(),
                CredentialToken.id.asc(),
            )
            .limit(1)
        )

    def next_usable(self) -> Optional[Credential]:
        """Return the least recently used active, valid credential."""
        with self.database.session() as sess:
            row = sess.execute(self._usable_query()).scalars().first()
            return Credential.from_row(row) if row is not None else None

    def acquire(self) -> Credential:
        """Select the next usable credential and mark it used in one step.

        Raises:
            CredentialUnavailableError: If no credential is active and valid.
        """
        with self._acquire_lock:
            with self.database.session() as sess:
                row = sess.execute(self._usable_query()).scalars().first()
                if row is None:
                    raise CredentialUnavailableError()
                row.last_used = _utcnow()
                sess.flush()
                credential = Credential.from_row(row)
        logger.debug(f"Using credential {credential.id} ({credential.name or 'unnamed'})")
        return credential

    def mark_used(self, credential_id: int) -> None:
        self._update(credential_id, last_used=_utcnow())

    def mark_valid(self, credential_id: int, is_valid: bool) -> bool:
        return self._update(credential_id, is_valid=is_valid)

    def set_active(self, credential_id: int, is_active: bool) -> bool:
        return self._update(credential_id, is_active=is_active)

    def rename(self, credential_id: int, name: str) -> bool:
        return self._update(credential_id, name=name)

    def _update(self, credential_id: int, **values: Any) -> bool:
        with self.database.session() as sess:
            row = sess.get(CredentialToken, credential_id)
            if row is None:
                return False
            for key, value in values.items():
                setattr(row, key, value)
            return True

    def add(self, name: str, token: str) -> Credential:
        """Store a new credential (unusable until probed valid).

        Raises:
            CredentialConflictError: If the token is already stored.
        """
        try:
            with self.database.session() as sess:
                row = CredentialToken(name=name, token=token, is_active=True, is_valid=False)
                sess.add(row)
                sess.flush()
                credential = Credential.from_row(row)
        except IntegrityError as exc:
            raise CredentialConflictError("Token already exists") from exc
        logger.info(f"Added credential {credential.id} ({name or 'unnamed'})")
        return credential

    def get(self, credential_id: int) -> Optional[Credential]:
        with self.database.session() as sess:
            row = sess.get(CredentialToken, credential_id)
            return Credential.from_row(row) if row is not None else None

    def list_all(self) -> list[Credential]:
        with self.database.session() as sess:
            rows = sess.execute(
                select(CredentialToken).order_by(CredentialToken.id.asc())
            ).scalars().all()
            return [Credential.from_row(row) for row in rows]

    def delete(self, credential_id: int) -> bool:
        with self.database.session() as sess:
            row = sess.get(CredentialToken, credential_id)
            if row is None:
                return False
            sess.delete(row)
        logger.info(f"Deleted credential {credential_id}")
        return True
