"""
citizen_registry.db.repositories.citizens

Repository for `Citizen` entities.

Responsibilities:
- Create and fetch active citizens by national id.
- Search active citizens by id or name.
- Apply status changes only when the observed status still holds.
"""

from __future__ import annotations

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from citizen_registry.db.base import utcnow
from citizen_registry.db.models import Citizen, CitizenStatus


class CitizenRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, citizen: Citizen) -> Citizen:
        self._session.add(citizen)
        await self._session.flush()
        return citizen

    async def get_active(self, national_id: str) -> Citizen | None:
        stmt = select(Citizen).where(
            Citizen.national_id == national_id, Citizen.deleted_at.is_(None)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def national_id_exists(self, national_id: str) -> bool:
        # Trashed rows still own their id.
        stmt = select(Citizen.id).where(Citizen.national_id == national_id)
        return (await self._session.execute(stmt)).first() is not None

    async def max_national_id(self) -> str | None:
        stmt = select(func.max(Citizen.national_id))
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def search(self, query: str, *, limit: int) -> list[Citizen]:
        escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        stmt = (
            select(Citizen)
            .where(
                Citizen.deleted_at.is_(None),
                or_(
                    Citizen.national_id.ilike(pattern, escape="\\"),
                    Citizen.first_name.ilike(pattern, escape="\\"),
                    Citizen.middle_name.ilike(pattern, escape="\\"),
                    Citizen.last_name.ilike(pattern, escape="\\"),
                ),
            )
            .order_by(Citizen.created_at.desc())
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def set_status_if(
        self,
        *,
        national_id: str,
        expected: CitizenStatus,
        new_status: CitizenStatus,
    ) -> bool:
        """
        Compare-and-set on the status column. Returns False when the citizen is no
        longer active or its status moved away from `expected`.
        """

        stmt = (
            update(Citizen)
            .where(
                Citizen.national_id == national_id,
                Citizen.deleted_at.is_(None),
                Citizen.status == expected,
            )
            .values(status=new_status, updated_at=utcnow())
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1
