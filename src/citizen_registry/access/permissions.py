"""
citizen_registry.access.permissions

Permission resolution for principals.

Responsibilities:
- Map a principal id to the permission codes of its role.
- Fail closed: an unknown or trashed principal, or a dangling role reference,
  resolves to the empty set instead of raising.
"""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from citizen_registry.access.reference_cache import ReferenceDataCache
from citizen_registry.db.repositories.users import UserRepo
from citizen_registry.observability.logging import get_logger

log = get_logger(__name__)

NO_PERMISSIONS: frozenset[str] = frozenset()


class PermissionResolver:
    def __init__(self, *, session: AsyncSession, cache: ReferenceDataCache) -> None:
        self._session = session
        self._cache = cache
        self._users = UserRepo(session)

    async def resolve_permissions(self, principal_id: uuid.UUID) -> frozenset[str]:
        user = await self._users.get_active(principal_id)
        if user is None:
            log.info("permissions.unknown_principal", principal_id=str(principal_id))
            return NO_PERMISSIONS

        role = await self._cache.role(self._session, user.role_id)
        if role is None:
            log.warning(
                "permissions.role_unresolved",
                principal_id=str(principal_id),
                role_id=str(user.role_id),
            )
            return NO_PERMISSIONS
        return role.permission_codes
