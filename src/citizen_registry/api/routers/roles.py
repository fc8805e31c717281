from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from citizen_registry.access.reference_cache import ReferenceDataCache
from citizen_registry.api.deps import db_session, reference_cache_dep, request_meta
from citizen_registry.api.schemas import ApiModel, PermissionResponse, RoleResponse
from citizen_registry.auth.deps import require_permissions
from citizen_registry.auth.models import Principal
from citizen_registry.services.activity import RequestMeta
from citizen_registry.services.roles import RoleService

router = APIRouter(prefix="/v1/roles", tags=["roles"])


class RolePermissionsRequest(ApiModel):
    permissions: list[str]


def role_service(
    session: AsyncSession = Depends(db_session),
    cache: ReferenceDataCache = Depends(reference_cache_dep),
) -> RoleService:
    return RoleService(session=session, cache=cache)


@router.get("", response_model=list[RoleResponse])
async def list_roles(
    _: Principal = Depends(require_permissions()),
    svc: RoleService = Depends(role_service),
) -> list[RoleResponse]:
    return [RoleResponse.from_role(r) for r in await svc.list_roles()]


@router.get("/permissions", response_model=list[PermissionResponse])
async def list_permissions(
    _: Principal = Depends(require_permissions()),
    svc: RoleService = Depends(role_service),
) -> list[PermissionResponse]:
    return [
        PermissionResponse(code=p.code, name=p.name, description=p.description)
        for p in await svc.list_permissions()
    ]


@router.put("/{role_id}/permissions", response_model=RoleResponse)
async def replace_role_permissions(
    role_id: uuid.UUID,
    body: RolePermissionsRequest,
    principal: Principal = Depends(require_permissions("MANAGE_USERS")),
    svc: RoleService = Depends(role_service),
    meta: RequestMeta = Depends(request_meta),
) -> RoleResponse:
    role = await svc.replace_permissions(
        role_id, body.permissions, actor_id=principal.user_id, meta=meta
    )
    return RoleResponse.from_role(role)
