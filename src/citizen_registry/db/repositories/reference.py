"""
citizen_registry.db.repositories.reference

Repository for reference data: permissions, roles and the menu catalog.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from citizen_registry.db.models import Menu, Permission, Role, RoleName


class ReferenceRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_permissions(self) -> list[Permission]:
        stmt = select(Permission).order_by(Permission.code)
        return list((await self._session.execute(stmt)).scalars().all())

    async def permissions_by_codes(self, codes: Iterable[str]) -> list[Permission]:
        wanted = set(codes)
        if not wanted:
            return []
        stmt = select(Permission).where(Permission.code.in_(wanted)).order_by(Permission.code)
        return list((await self._session.execute(stmt)).scalars().all())

    async def list_roles(self) -> list[Role]:
        stmt = (
            select(Role)
            .options(selectinload(Role.permissions))
            .order_by(Role.name)
            .execution_options(populate_existing=True)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def get_role(self, role_id: uuid.UUID) -> Role | None:
        # Roles arrive in the identity map through User.role without their permissions.
        return await self._session.get(
            Role, role_id, options=[selectinload(Role.permissions)], populate_existing=True
        )

    async def get_role_by_name(self, name: RoleName) -> Role | None:
        stmt = (
            select(Role)
            .options(selectinload(Role.permissions))
            .where(Role.name == name)
            .execution_options(populate_existing=True)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_menus(self) -> list[Menu]:
        # Fetch order is the tie-breaker for siblings sharing an order index.
        stmt = select(Menu).order_by(Menu.order_index, Menu.name)
        return list((await self._session.execute(stmt)).scalars().all())
