"""
citizen_registry.api.schemas

Request/response models shared by the routers.

Responsibilities:
- camelCase wire names for every payload (requests accept snake_case too).
- Conversions from ORM rows / service results to response models.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from citizen_registry.db.models import Activity, Citizen, Role, StatusChangeLog, User
from citizen_registry.services.lifecycle import Page

ItemT = TypeVar("ItemT")


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PageResponse(ApiModel, Generic[ItemT]):
    items: list[ItemT]
    total: int
    page: int
    page_size: int
    pages: int

    @classmethod
    def build(cls, page: Page[Any], items: list[ItemT]) -> PageResponse[ItemT]:
        return cls(
            items=items,
            total=page.total,
            page=page.page,
            page_size=page.page_size,
            pages=page.pages,
        )


class RoleSummary(ApiModel):
    id: uuid.UUID
    name: str
    description: str | None = None


class RoleResponse(RoleSummary):
    permissions: list[str] = Field(default_factory=list)

    @classmethod
    def from_role(cls, role: Role) -> RoleResponse:
        return cls(
            id=role.id,
            name=role.name.value,
            description=role.description,
            permissions=sorted(p.code for p in role.permissions),
        )


class PermissionResponse(ApiModel):
    code: str
    name: str
    description: str | None = None


class UserResponse(ApiModel):
    id: uuid.UUID
    username: str
    role: RoleSummary | None
    status: str
    phone_number: str | None
    deleted_at: datetime | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> UserResponse:
        role = user.role
        return cls(
            id=user.id,
            username=user.username,
            role=RoleSummary(id=role.id, name=role.name.value, description=role.description)
            if role is not None
            else None,
            status=user.status.value,
            phone_number=user.phone_number,
            deleted_at=user.deleted_at,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class CitizenResponse(ApiModel):
    id: uuid.UUID
    national_id: str
    first_name: str
    middle_name: str | None
    last_name: str
    full_name: str
    gender: str
    date_of_birth: date
    place_of_birth: str
    nationality: str
    status: str
    deleted_at: datetime | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_citizen(cls, c: Citizen) -> CitizenResponse:
        return cls(
            id=c.id,
            national_id=c.national_id,
            first_name=c.first_name,
            middle_name=c.middle_name,
            last_name=c.last_name,
            full_name=c.full_name,
            gender=c.gender.value,
            date_of_birth=c.date_of_birth,
            place_of_birth=c.place_of_birth,
            nationality=c.nationality,
            status=c.status.value,
            deleted_at=c.deleted_at,
            created_at=c.created_at,
            updated_at=c.updated_at,
        )


class StatusChangeResponse(ApiModel):
    subject_id: str
    old_status: str
    new_status: str
    actor_id: uuid.UUID
    changed_at: datetime

    @classmethod
    def from_row(cls, row: StatusChangeLog) -> StatusChangeResponse:
        return cls(
            subject_id=row.subject_id,
            old_status=row.old_status.value,
            new_status=row.new_status.value,
            actor_id=row.actor_id,
            changed_at=row.changed_at,
        )


class ActivityResponse(ApiModel):
    id: uuid.UUID
    user_id: uuid.UUID
    action: str
    entity_type: str
    entity_id: str | None
    description: str | None
    ip_address: str | None
    created_at: datetime

    @classmethod
    def from_activity(cls, a: Activity) -> ActivityResponse:
        return cls(
            id=a.id,
            user_id=a.user_id,
            action=a.action,
            entity_type=a.entity_type,
            entity_id=a.entity_id,
            description=a.description,
            ip_address=a.ip_address,
            created_at=a.created_at,
        )


class MessageResponse(ApiModel):
    message: str
