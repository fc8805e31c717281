"""
citizen_registry.api.routers.session

Session bootstrap for the frontend.

Responsibilities:
- Return the caller's profile, role, effective permission codes and menu tree.
- Tell the client how long an idle session may last.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from citizen_registry.access.menus import MenuComposer
from citizen_registry.access.permissions import PermissionResolver
from citizen_registry.access.reference_cache import ReferenceDataCache
from citizen_registry.api.deps import db_session, reference_cache_dep, settings_dep
from citizen_registry.api.schemas import ApiModel, UserResponse
from citizen_registry.auth.deps import require_permissions
from citizen_registry.auth.models import Principal
from citizen_registry.db.repositories.users import UserRepo
from citizen_registry.errors import NotFoundError
from citizen_registry.settings import Settings

router = APIRouter(prefix="/v1/auth", tags=["auth"])


class SessionResponse(ApiModel):
    user: UserResponse
    permissions: list[str]
    menus: list[dict[str, Any]]
    session_timeout: int


@router.get("/session", response_model=SessionResponse)
async def current_session(
    principal: Principal = Depends(require_permissions()),
    session: AsyncSession = Depends(db_session),
    cache: ReferenceDataCache = Depends(reference_cache_dep),
    settings: Settings = Depends(settings_dep),
) -> SessionResponse:
    user = await UserRepo(session).get_active(principal.user_id)
    if user is None:
        raise NotFoundError("User not found")

    resolver = PermissionResolver(session=session, cache=cache)
    granted = await resolver.resolve_permissions(principal.user_id)
    menus = await MenuComposer(session=session, cache=cache, resolver=resolver).menus_for_principal(
        principal.user_id
    )
    return SessionResponse(
        user=UserResponse.from_user(user),
        permissions=sorted(granted),
        menus=[m.as_dict() for m in menus],
        session_timeout=settings.session_timeout_seconds,
    )
