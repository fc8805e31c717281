"""
citizen_registry.services.activity

System activity log (who did what to which record).

Responsibilities:
- Append activity rows in the caller's transaction.
- Query recent activity, overall and per user.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from citizen_registry.db.models import Activity
from citizen_registry.db.repositories.activities import ActivityRepo


@dataclass(frozen=True, slots=True)
class RequestMeta:
    ip_address: str | None = None
    user_agent: str | None = None


NO_REQUEST_META = RequestMeta()


class ActivityService:
    def __init__(self, session: AsyncSession) -> None:
        self._repo = ActivityRepo(session)

    async def log_activity(
        self,
        *,
        user_id: uuid.UUID,
        action: str,
        entity_type: str,
        entity_id: str | None = None,
        description: str | None = None,
        meta: RequestMeta = NO_REQUEST_META,
    ) -> Activity:
        return await self._repo.add(
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            description=description,
            ip_address=meta.ip_address,
            user_agent=meta.user_agent[:500] if meta.user_agent else None,
        )

    async def recent(self, *, limit: int = 20) -> list[Activity]:
        return await self._repo.recent(limit=limit)

    async def for_user(self, user_id: uuid.UUID, *, limit: int = 50) -> list[Activity]:
        return await self._repo.for_user(user_id, limit=limit)

    async def for_entity(self, entity_type: str, entity_id: str) -> list[Activity]:
        return await self._repo.for_entity(entity_type, entity_id)


# --- Module Notes -----------------------------------------------------------
# Activities are committed together with the change they describe; a failed write
# fails the operation instead of being dropped.
