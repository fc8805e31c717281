"""
citizen_registry.auth.models

Auth domain models.

Responsibilities:
- Define the authenticated identity type (`Principal`) injected into endpoints.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

from citizen_registry.db.models import AccountStatus, User


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity, as loaded from the user record.
    """

    user_id: uuid.UUID
    username: str
    role_id: uuid.UUID | None
    status: AccountStatus
    deleted_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.active and self.deleted_at is None

    @classmethod
    def from_user(cls, user: User) -> Principal:
        return cls(
            user_id=user.id,
            username=user.username,
            role_id=user.role_id,
            status=user.status,
            deleted_at=user.deleted_at,
        )


# --- Module Notes -----------------------------------------------------------
# There is no per-user permission override: permissions always come from the role.
