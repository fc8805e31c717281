from __future__ import annotations

import uuid

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from citizen_registry.db.models import Activity


class ActivityRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(
        self,
        *,
        user_id: uuid.UUID,
        action: str,
        entity_type: str,
        entity_id: str | None = None,
        description: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> Activity:
        # Append-only; rows are never updated or deleted by the application.
        activity = Activity(
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            description=description,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self._session.add(activity)
        await self._session.flush()
        return activity

    async def recent(self, *, limit: int = 20) -> list[Activity]:
        stmt = select(Activity).order_by(desc(Activity.created_at)).limit(limit)
        return list((await self._session.execute(stmt)).scalars().all())

    async def for_user(self, user_id: uuid.UUID, *, limit: int = 50) -> list[Activity]:
        stmt = (
            select(Activity)
            .where(Activity.user_id == user_id)
            .order_by(desc(Activity.created_at))
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def for_entity(self, entity_type: str, entity_id: str) -> list[Activity]:
        stmt = (
            select(Activity)
            .where(Activity.entity_type == entity_type, Activity.entity_id == entity_id)
            .order_by(desc(Activity.created_at))
        )
        return list((await self._session.execute(stmt)).scalars().all())
