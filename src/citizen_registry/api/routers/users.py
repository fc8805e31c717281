"""
citizen_registry.api.routers.users

System user administration endpoints (MANAGE_USERS).
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from citizen_registry.api.deps import Paging, db_session, paging, request_meta, settings_dep
from citizen_registry.api.schemas import ApiModel, MessageResponse, PageResponse, UserResponse
from citizen_registry.auth.deps import require_permissions
from citizen_registry.auth.models import Principal
from citizen_registry.services.activity import RequestMeta
from citizen_registry.services.users import UserService
from citizen_registry.settings import Settings

router = APIRouter(prefix="/v1/users", tags=["users"])

_manage_users = require_permissions("MANAGE_USERS")


class UserCreateRequest(ApiModel):
    username: str = Field(min_length=1, max_length=100)
    role_id: uuid.UUID | None = None
    role_name: str | None = None
    status: str = "ACTIVE"
    phone_number: str | None = None


class UserUpdateRequest(ApiModel):
    role_id: uuid.UUID | None = None
    role_name: str | None = None
    status: str | None = None
    phone_number: str | None = None


class UserStatusRequest(ApiModel):
    status: str


def user_service(
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> UserService:
    return UserService(session=session, max_page_size=settings.max_page_size)


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    body: UserCreateRequest,
    principal: Principal = Depends(_manage_users),
    svc: UserService = Depends(user_service),
    meta: RequestMeta = Depends(request_meta),
) -> UserResponse:
    user = await svc.create(
        username=body.username,
        role_id=body.role_id,
        role_name=body.role_name,
        status=body.status,
        phone_number=body.phone_number,
        actor_id=principal.user_id,
        meta=meta,
    )
    return UserResponse.from_user(user)


@router.get("", response_model=PageResponse[UserResponse])
async def list_users(
    window: Paging = Depends(paging),
    _: Principal = Depends(_manage_users),
    svc: UserService = Depends(user_service),
) -> PageResponse[UserResponse]:
    page = await svc.list_active(page=window.page, page_size=window.page_size)
    return PageResponse[UserResponse].build(page, [UserResponse.from_user(u) for u in page.items])


@router.get("/trash", response_model=PageResponse[UserResponse])
async def list_user_trash(
    window: Paging = Depends(paging),
    _: Principal = Depends(_manage_users),
    svc: UserService = Depends(user_service),
) -> PageResponse[UserResponse]:
    page = await svc.list_trash(page=window.page, page_size=window.page_size)
    return PageResponse[UserResponse].build(page, [UserResponse.from_user(u) for u in page.items])


@router.post("/trash/{user_id}/restore", response_model=UserResponse)
async def restore_user(
    user_id: uuid.UUID,
    principal: Principal = Depends(_manage_users),
    svc: UserService = Depends(user_service),
    meta: RequestMeta = Depends(request_meta),
) -> UserResponse:
    return UserResponse.from_user(
        await svc.restore(user_id, actor_id=principal.user_id, meta=meta)
    )


@router.delete("/trash/{user_id}", response_model=MessageResponse)
async def purge_user(
    user_id: uuid.UUID,
    principal: Principal = Depends(_manage_users),
    svc: UserService = Depends(user_service),
    meta: RequestMeta = Depends(request_meta),
) -> MessageResponse:
    await svc.purge(user_id, actor_id=principal.user_id, meta=meta)
    return MessageResponse(message="User permanently deleted")


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: uuid.UUID,
    _: Principal = Depends(_manage_users),
    svc: UserService = Depends(user_service),
) -> UserResponse:
    return UserResponse.from_user(await svc.get(user_id))


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdateRequest,
    principal: Principal = Depends(_manage_users),
    svc: UserService = Depends(user_service),
    meta: RequestMeta = Depends(request_meta),
) -> UserResponse:
    fields = body.model_dump(exclude_unset=True)
    extra = {"phone_number": fields["phone_number"]} if "phone_number" in fields else {}
    user = await svc.update(
        user_id,
        role_id=body.role_id,
        role_name=body.role_name,
        status=body.status,
        actor_id=principal.user_id,
        meta=meta,
        **extra,
    )
    return UserResponse.from_user(user)


@router.post("/{user_id}/status", response_model=UserResponse)
async def change_user_status(
    user_id: uuid.UUID,
    body: UserStatusRequest,
    principal: Principal = Depends(_manage_users),
    svc: UserService = Depends(user_service),
    meta: RequestMeta = Depends(request_meta),
) -> UserResponse:
    user = await svc.change_status(user_id, body.status, actor_id=principal.user_id, meta=meta)
    return UserResponse.from_user(user)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: uuid.UUID,
    principal: Principal = Depends(_manage_users),
    svc: UserService = Depends(user_service),
    meta: RequestMeta = Depends(request_meta),
) -> MessageResponse:
    await svc.soft_delete(user_id, actor_id=principal.user_id, meta=meta)
    return MessageResponse(message="User moved to trash")
