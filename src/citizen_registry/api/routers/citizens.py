"""
citizen_registry.api.routers.citizens

Citizen registry endpoints.

Responsibilities:
- CRUD and search over active citizens.
- Status changes (audited) and status history.
- Trash view, restore and permanent delete.
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from citizen_registry.api.deps import Paging, db_session, paging, request_meta, settings_dep
from citizen_registry.api.schemas import (
    ApiModel,
    CitizenResponse,
    MessageResponse,
    PageResponse,
    StatusChangeResponse,
)
from citizen_registry.auth.deps import require_permissions
from citizen_registry.auth.models import Principal
from citizen_registry.services.activity import RequestMeta
from citizen_registry.services.citizens import CitizenDraft, CitizenService
from citizen_registry.settings import Settings

router = APIRouter(prefix="/v1/citizens", tags=["citizens"])


class CitizenCreateRequest(ApiModel):
    first_name: str = Field(min_length=1, max_length=100)
    middle_name: str | None = Field(default=None, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    gender: str
    date_of_birth: date
    place_of_birth: str = Field(min_length=1, max_length=200)
    nationality: str | None = Field(default=None, max_length=100)


class CitizenUpdateRequest(ApiModel):
    first_name: str | None = Field(default=None, max_length=100)
    middle_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    gender: str | None = None
    date_of_birth: date | None = None
    place_of_birth: str | None = Field(default=None, max_length=200)
    nationality: str | None = Field(default=None, max_length=100)
    status: str | None = None


class StatusChangeRequest(ApiModel):
    status: str


def citizen_service(
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> CitizenService:
    return CitizenService(session=session, max_page_size=settings.max_page_size)


@router.post("", response_model=CitizenResponse, status_code=201)
async def register_citizen(
    body: CitizenCreateRequest,
    principal: Principal = Depends(require_permissions("CREATE_CITIZEN")),
    svc: CitizenService = Depends(citizen_service),
    meta: RequestMeta = Depends(request_meta),
) -> CitizenResponse:
    draft = CitizenDraft(**body.model_dump())
    citizen = await svc.register(draft, actor_id=principal.user_id, meta=meta)
    return CitizenResponse.from_citizen(citizen)


@router.get("", response_model=PageResponse[CitizenResponse])
async def list_citizens(
    window: Paging = Depends(paging),
    _: Principal = Depends(require_permissions("VIEW_CITIZEN")),
    svc: CitizenService = Depends(citizen_service),
) -> PageResponse[CitizenResponse]:
    page = await svc.list_active(page=window.page, page_size=window.page_size)
    return PageResponse[CitizenResponse].build(
        page, [CitizenResponse.from_citizen(c) for c in page.items]
    )


@router.get("/search", response_model=list[CitizenResponse])
async def search_citizens(
    query: str = Query(min_length=1),
    limit: int | None = Query(default=None, ge=1),
    _: Principal = Depends(require_permissions("VIEW_CITIZEN")),
    svc: CitizenService = Depends(citizen_service),
    settings: Settings = Depends(settings_dep),
) -> list[CitizenResponse]:
    cap = min(limit or settings.search_limit, settings.max_page_size)
    return [CitizenResponse.from_citizen(c) for c in await svc.search(query, limit=cap)]


@router.get("/trash", response_model=PageResponse[CitizenResponse])
async def list_citizen_trash(
    window: Paging = Depends(paging),
    _: Principal = Depends(require_permissions("VIEW_CITIZEN")),
    svc: CitizenService = Depends(citizen_service),
) -> PageResponse[CitizenResponse]:
    page = await svc.list_trash(page=window.page, page_size=window.page_size)
    return PageResponse[CitizenResponse].build(
        page, [CitizenResponse.from_citizen(c) for c in page.items]
    )


@router.post("/trash/{national_id}/restore", response_model=CitizenResponse)
async def restore_citizen(
    national_id: str,
    principal: Principal = Depends(require_permissions("DELETE_CITIZEN")),
    svc: CitizenService = Depends(citizen_service),
    meta: RequestMeta = Depends(request_meta),
) -> CitizenResponse:
    citizen = await svc.restore(national_id, actor_id=principal.user_id, meta=meta)
    return CitizenResponse.from_citizen(citizen)


@router.delete("/trash/{national_id}", response_model=MessageResponse)
async def purge_citizen(
    national_id: str,
    principal: Principal = Depends(require_permissions("DELETE_CITIZEN")),
    svc: CitizenService = Depends(citizen_service),
    meta: RequestMeta = Depends(request_meta),
) -> MessageResponse:
    await svc.purge(national_id, actor_id=principal.user_id, meta=meta)
    return MessageResponse(message="Citizen permanently deleted")


@router.get("/{national_id}", response_model=CitizenResponse)
async def get_citizen(
    national_id: str,
    _: Principal = Depends(require_permissions("VIEW_CITIZEN")),
    svc: CitizenService = Depends(citizen_service),
) -> CitizenResponse:
    return CitizenResponse.from_citizen(await svc.get(national_id))


@router.put("/{national_id}", response_model=CitizenResponse)
async def update_citizen(
    national_id: str,
    body: CitizenUpdateRequest,
    principal: Principal = Depends(require_permissions("UPDATE_CITIZEN")),
    svc: CitizenService = Depends(citizen_service),
    meta: RequestMeta = Depends(request_meta),
) -> CitizenResponse:
    citizen = await svc.update(
        national_id,
        body.model_dump(exclude_unset=True),
        actor_id=principal.user_id,
        meta=meta,
    )
    return CitizenResponse.from_citizen(citizen)


@router.post("/{national_id}/status", response_model=CitizenResponse)
async def change_citizen_status(
    national_id: str,
    body: StatusChangeRequest,
    principal: Principal = Depends(require_permissions("UPDATE_CITIZEN")),
    svc: CitizenService = Depends(citizen_service),
    meta: RequestMeta = Depends(request_meta),
) -> CitizenResponse:
    citizen = await svc.change_status(
        national_id, body.status, actor_id=principal.user_id, meta=meta
    )
    return CitizenResponse.from_citizen(citizen)


@router.get("/{national_id}/status-history", response_model=list[StatusChangeResponse])
async def citizen_status_history(
    national_id: str,
    _: Principal = Depends(require_permissions("VIEW_CITIZEN")),
    svc: CitizenService = Depends(citizen_service),
) -> list[StatusChangeResponse]:
    return [StatusChangeResponse.from_row(r) for r in await svc.status_history(national_id)]


@router.delete("/{national_id}", response_model=MessageResponse)
async def delete_citizen(
    national_id: str,
    principal: Principal = Depends(require_permissions("DELETE_CITIZEN")),
    svc: CitizenService = Depends(citizen_service),
    meta: RequestMeta = Depends(request_meta),
) -> MessageResponse:
    await svc.soft_delete(national_id, actor_id=principal.user_id, meta=meta)
    return MessageResponse(message="Citizen moved to trash")
