"""
citizen_registry.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Convert a bearer token into a typed `Principal` loaded from the user store.
- Enforce permission requirements through the access guard.
"""

from __future__ import annotations

import structlog
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from citizen_registry.access.guard import AccessDecision, AccessGuard
from citizen_registry.access.permissions import PermissionResolver
from citizen_registry.access.reference_cache import ReferenceDataCache
from citizen_registry.api.deps import db_session, reference_cache_dep, settings_dep
from citizen_registry.auth.jwt import (
    JwtConfig,
    JwtValidationError,
    decode_and_validate,
    subject_user_id,
)
from citizen_registry.auth.models import Principal
from citizen_registry.db.repositories.users import UserRepo
from citizen_registry.settings import Settings

_bearer = HTTPBearer(auto_error=False)


async def get_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(settings_dep),
    session: AsyncSession = Depends(db_session),
) -> Principal:
    if creds is None or not creds.credentials:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Missing bearer token")

    try:
        payload = decode_and_validate(cfg=JwtConfig.from_settings(settings), token=creds.credentials)
        user_id = subject_user_id(payload)
    except JwtValidationError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}") from e

    # Trashed and disabled users still load here; the guard turns them into 403s.
    user = await UserRepo(session).get(user_id)
    if user is None:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="User not found")

    structlog.contextvars.bind_contextvars(principal_id=str(user.id))
    return Principal.from_user(user)


def require_permissions(*required: str):
    """
    Dependency factory. With no codes, only an active account is required.
    """

    required_set = frozenset(required)

    async def _dep(
        principal: Principal = Depends(get_principal),
        session: AsyncSession = Depends(db_session),
        cache: ReferenceDataCache = Depends(reference_cache_dep),
    ) -> Principal:
        guard = AccessGuard(resolver=PermissionResolver(session=session, cache=cache))
        if await guard.authorize(principal, required_set) is AccessDecision.deny:
            detail = "Account is inactive" if not principal.is_active else "Insufficient permissions"
            raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail=detail)
        return principal

    return _dep


# --- Module Notes -----------------------------------------------------------
# Routers use `require_permissions(...)` both as a route dependency and to receive the
# principal for attribution (actor ids on activities and status logs).
