from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from citizen_registry.db.models import AccountStatus, User


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        username: str,
        role_id: uuid.UUID,
        status: AccountStatus = AccountStatus.active,
        phone_number: str | None = None,
    ) -> User:
        user = User(
            username=username,
            role_id=role_id,
            status=status,
            phone_number=phone_number,
            deleted_at=None,
        )
        self._session.add(user)
        await self._session.flush()
        return user

    async def get(self, user_id: uuid.UUID) -> User | None:
        # Any lifecycle state; callers decide what a trashed user means to them.
        return await self._session.get(User, user_id)

    async def get_active(self, user_id: uuid.UUID) -> User | None:
        stmt = select(User).where(User.id == user_id, User.deleted_at.is_(None))
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_by_username(self, username: str) -> User | None:
        stmt = select(User).where(User.username == username)
        return (await self._session.execute(stmt)).scalar_one_or_none()
