"""
citizen_registry.db.repositories.status_changes

Repository for `StatusChangeLog` rows.

Responsibilities:
- Append status transition rows.
- Query the trail for one citizen.
"""

from __future__ import annotations

import uuid

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from citizen_registry.db.models import CitizenStatus, StatusChangeLog


class StatusChangeRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(
        self,
        *,
        subject_id: str,
        old_status: CitizenStatus,
        new_status: CitizenStatus,
        actor_id: uuid.UUID,
    ) -> StatusChangeLog:
        row = StatusChangeLog(
            subject_id=subject_id,
            old_status=old_status,
            new_status=new_status,
            actor_id=actor_id,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def list_for_subject(self, subject_id: str, *, limit: int = 200) -> list[StatusChangeLog]:
        stmt = (
            select(StatusChangeLog)
            .where(StatusChangeLog.subject_id == subject_id)
            .order_by(desc(StatusChangeLog.changed_at))
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars().all())


# --- Module Notes -----------------------------------------------------------
# The trail is append-only: no update or delete methods.
