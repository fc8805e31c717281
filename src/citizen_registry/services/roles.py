"""
citizen_registry.services.roles

Role administration.

Responsibilities:
- List roles and the permission catalog.
- Replace a role's permission set as a whole, then invalidate the reference cache.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from citizen_registry.access.reference_cache import ReferenceDataCache
from citizen_registry.db.models import Permission, Role
from citizen_registry.db.repositories.reference import ReferenceRepo
from citizen_registry.errors import NotFoundError, ValidationError
from citizen_registry.observability.logging import get_logger
from citizen_registry.services.activity import NO_REQUEST_META, ActivityService, RequestMeta

log = get_logger(__name__)


class RoleService:
    def __init__(self, *, session: AsyncSession, cache: ReferenceDataCache) -> None:
        self._session = session
        self._cache = cache
        self._reference = ReferenceRepo(session)
        self._activities = ActivityService(session)

    async def list_roles(self) -> list[Role]:
        return await self._reference.list_roles()

    async def list_permissions(self) -> list[Permission]:
        return await self._reference.list_permissions()

    async def replace_permissions(
        self,
        role_id: uuid.UUID,
        codes: Iterable[str],
        *,
        actor_id: uuid.UUID,
        meta: RequestMeta = NO_REQUEST_META,
    ) -> Role:
        role = await self._reference.get_role(role_id)
        if role is None:
            raise NotFoundError("Role not found")

        wanted = {c.strip().upper() for c in codes if c and c.strip()}
        permissions = await self._reference.permissions_by_codes(wanted)
        unknown = wanted - {p.code for p in permissions}
        if unknown:
            raise ValidationError(f"Unknown permission codes: {', '.join(sorted(unknown))}")

        role.permissions = permissions
        await self._activities.log_activity(
            user_id=actor_id,
            action="UPDATE_ROLE_PERMISSIONS",
            entity_type="role",
            entity_id=str(role.id),
            description=f"Set {role.name.value} permissions to {', '.join(sorted(wanted)) or '(none)'}",
            meta=meta,
        )
        await self._session.commit()
        # Only after commit, so no reader can cache the pre-write set again.
        self._cache.invalidate()
        log.info("role.permissions_replaced", role=role.name.value, codes=sorted(wanted))
        return role
