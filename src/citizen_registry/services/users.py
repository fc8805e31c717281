"""
citizen_registry.services.users

System user administration (transaction owner for user writes).

Responsibilities:
- Create, read and update users (role assignment, account status, phone).
- Keep ADMIN users on the ADMIN role.
- Expose the user lifecycle (trash/restore/purge) with activity logging.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from citizen_registry.db.base import utcnow
from citizen_registry.db.models import AccountStatus, Role, RoleName, User
from citizen_registry.db.repositories.reference import ReferenceRepo
from citizen_registry.db.repositories.users import UserRepo
from citizen_registry.errors import ConflictError, NotFoundError, ValidationError
from citizen_registry.observability.logging import get_logger
from citizen_registry.services.activity import NO_REQUEST_META, ActivityService, RequestMeta
from citizen_registry.services.lifecycle import (
    DEFAULT_MAX_PAGE_SIZE,
    MANAGED_ENTITIES,
    EntityType,
    LifecycleManager,
    Page,
)
from citizen_registry.services.validation import parse_choice, validate_phone, validate_username

log = get_logger(__name__)

ENTITY = "user"

_UNSET = object()


class UserService:
    def __init__(
        self,
        *,
        session: AsyncSession,
        max_page_size: int = DEFAULT_MAX_PAGE_SIZE,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session = session
        self._users = UserRepo(session)
        self._reference = ReferenceRepo(session)
        self._activities = ActivityService(session)
        self._lifecycle: LifecycleManager[User] = LifecycleManager(
            session=session,
            entity=MANAGED_ENTITIES[EntityType.user],
            max_page_size=max_page_size,
            clock=clock,
        )

    async def create(
        self,
        *,
        username: str,
        role_id: uuid.UUID | None = None,
        role_name: str | None = None,
        status: str = AccountStatus.active.value,
        phone_number: str | None = None,
        actor_id: uuid.UUID,
        meta: RequestMeta = NO_REQUEST_META,
    ) -> User:
        name = validate_username(username)
        role = await self._resolve_role(role_id=role_id, role_name=role_name)
        if role is None:
            raise ValidationError("Role is required")
        account_status = parse_choice(AccountStatus, status, "status")
        phone = validate_phone(phone_number)

        # Usernames stay reserved while a user sits in the trash.
        if await self._users.get_by_username(name) is not None:
            raise ConflictError("Username already exists")

        user = await self._users.create(
            username=name, role_id=role.id, status=account_status, phone_number=phone
        )
        await self._log(actor_id, "CREATE_USER", user.id, f"Created user: {name}", meta)
        await self._session.commit()
        log.info("user.created", user_id=str(user.id), role=role.name.value)
        await self._session.refresh(user)
        return user

    async def get(self, user_id: uuid.UUID) -> User:
        user = await self._users.get_active(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def list_active(self, *, page: int, page_size: int) -> Page[User]:
        return await self._lifecycle.list_active(page=page, page_size=page_size)

    async def list_trash(self, *, page: int, page_size: int) -> Page[User]:
        return await self._lifecycle.list_trash(page=page, page_size=page_size)

    async def update(
        self,
        user_id: uuid.UUID,
        *,
        role_id: uuid.UUID | None = None,
        role_name: str | None = None,
        status: str | None = None,
        phone_number: str | None | object = _UNSET,
        actor_id: uuid.UUID,
        meta: RequestMeta = NO_REQUEST_META,
    ) -> User:
        user = await self.get(user_id)

        role = await self._resolve_role(role_id=role_id, role_name=role_name)
        if role is not None and role.id != user.role_id:
            current = await self._reference.get_role(user.role_id)
            if current is not None and current.name == RoleName.admin and role.name != RoleName.admin:
                raise ConflictError("Cannot change role of an Admin user")
            user.role_id = role.id
        if status is not None:
            user.status = parse_choice(AccountStatus, status, "status")
        if phone_number is not _UNSET:
            user.phone_number = validate_phone(phone_number)  # type: ignore[arg-type]

        await self._log(actor_id, "UPDATE_USER", user.id, f"Updated user: {user.username}", meta)
        await self._session.commit()
        # Reload so the joined role reflects a changed role_id.
        await self._session.refresh(user)
        return user

    async def change_status(
        self,
        user_id: uuid.UUID,
        status: str,
        *,
        actor_id: uuid.UUID,
        meta: RequestMeta = NO_REQUEST_META,
    ) -> User:
        user = await self.get(user_id)
        user.status = parse_choice(AccountStatus, status, "status")
        await self._log(
            actor_id,
            "UPDATE_USER_STATUS",
            user.id,
            f"Changed status of {user.username} to {user.status.value}",
            meta,
        )
        await self._session.commit()
        return user

    async def soft_delete(
        self, user_id: uuid.UUID, *, actor_id: uuid.UUID, meta: RequestMeta = NO_REQUEST_META
    ) -> None:
        await self._lifecycle.soft_delete(user_id)
        await self._log(actor_id, "DELETE_USER", user_id, f"Deleted user: {user_id}", meta)
        await self._session.commit()

    async def restore(
        self, user_id: uuid.UUID, *, actor_id: uuid.UUID, meta: RequestMeta = NO_REQUEST_META
    ) -> User:
        await self._lifecycle.restore(user_id)
        await self._log(actor_id, "RESTORE_USER", user_id, f"Restored user: {user_id}", meta)
        await self._session.commit()
        return await self.get(user_id)

    async def purge(
        self, user_id: uuid.UUID, *, actor_id: uuid.UUID, meta: RequestMeta = NO_REQUEST_META
    ) -> None:
        await self._lifecycle.purge(user_id)
        await self._log(
            actor_id, "PERMANENT_DELETE_USER", user_id, f"Permanently deleted user: {user_id}", meta
        )
        await self._session.commit()

    async def _resolve_role(
        self, *, role_id: uuid.UUID | None, role_name: str | None
    ) -> Role | None:
        if role_id is None and not role_name:
            return None
        role: Role | None = None
        if role_id is not None:
            role = await self._reference.get_role(role_id)
        if role is None and role_name:
            role = await self._reference.get_role_by_name(parse_choice(RoleName, role_name, "role"))
        if role is None:
            raise ValidationError("Invalid role ID or name")
        return role

    async def _log(
        self,
        actor_id: uuid.UUID,
        action: str,
        user_id: uuid.UUID,
        description: str,
        meta: RequestMeta,
    ) -> None:
        await self._activities.log_activity(
            user_id=actor_id,
            action=action,
            entity_type=ENTITY,
            entity_id=str(user_id),
            description=description,
            meta=meta,
        )
