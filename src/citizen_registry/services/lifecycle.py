"""
citizen_registry.services.lifecycle

Soft-delete / trash / restore / purge lifecycle, shared by users and citizens.

Responsibilities:
- Apply Active -> Trashed -> Purged transitions (and Trashed -> Active) as single
  conditional statements, so concurrent callers cannot both win a transition.
- Serve paginated "active" and "trash" views that partition the non-purged rows.

States, per row:
    Active   deleted_at IS NULL
    Trashed  deleted_at IS NOT NULL
    Purged   row removed (terminal)
"""

from __future__ import annotations

import enum
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from citizen_registry.db.base import utcnow
from citizen_registry.db.models import Citizen, User
from citizen_registry.errors import NotFoundError, ValidationError
from citizen_registry.observability.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T", User, Citizen)

DEFAULT_MAX_PAGE_SIZE = 100


class EntityType(enum.StrEnum):
    user = "user"
    citizen = "citizen"


@dataclass(frozen=True, slots=True)
class ManagedEntity(Generic[T]):
    entity_type: EntityType
    model: type[T]
    key: InstrumentedAttribute[Any]
    label: str


MANAGED_ENTITIES: dict[EntityType, ManagedEntity[Any]] = {
    EntityType.user: ManagedEntity(EntityType.user, User, User.id, "User"),
    EntityType.citizen: ManagedEntity(EntityType.citizen, Citizen, Citizen.national_id, "Citizen"),
}


@dataclass(frozen=True, slots=True)
class Page(Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.total else 0


class LifecycleManager(Generic[T]):
    """
    Lifecycle operations for one managed entity type.

    The manager flushes statements but never commits; the calling service owns the
    transaction so it can add activity rows atomically with the transition.
    """

    def __init__(
        self,
        *,
        session: AsyncSession,
        entity: ManagedEntity[T],
        max_page_size: int = DEFAULT_MAX_PAGE_SIZE,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session = session
        self._entity = entity
        self._model = entity.model
        self._max_page_size = max_page_size
        self._clock = clock

    @property
    def entity(self) -> ManagedEntity[T]:
        return self._entity

    async def get_active(self, key: Any) -> T | None:
        stmt = select(self._model).where(self._entity.key == key, self._model.deleted_at.is_(None))
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_trashed(self, key: Any) -> T | None:
        stmt = select(self._model).where(
            self._entity.key == key, self._model.deleted_at.is_not(None)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def soft_delete(self, key: Any) -> datetime:
        """Active -> Trashed. Trashed or missing rows raise NotFoundError."""

        deleted_at = self._clock()
        stmt = (
            update(self._model)
            .where(self._entity.key == key, self._model.deleted_at.is_(None))
            .values(deleted_at=deleted_at)
        )
        await self._apply(stmt, key=key, transition="soft_deleted")
        return deleted_at

    async def restore(self, key: Any) -> None:
        """Trashed -> Active. Active or missing rows raise NotFoundError."""

        stmt = (
            update(self._model)
            .where(self._entity.key == key, self._model.deleted_at.is_not(None))
            .values(deleted_at=None)
        )
        await self._apply(stmt, key=key, transition="restored")

    async def purge(self, key: Any) -> None:
        """Trashed -> Purged. Active rows must go through the trash first."""

        stmt = delete(self._model).where(
            self._entity.key == key, self._model.deleted_at.is_not(None)
        )
        await self._apply(stmt, key=key, transition="purged")

    async def list_active(self, *, page: int = 1, page_size: int = 50) -> Page[T]:
        self._check_paging(page, page_size)
        active = self._model.deleted_at.is_(None)
        return await self._page(
            where=active,
            order_by=(self._model.created_at.desc(), self._model.id.desc()),
            page=page,
            page_size=page_size,
        )

    async def list_trash(self, *, page: int = 1, page_size: int = 50) -> Page[T]:
        self._check_paging(page, page_size)
        trashed = self._model.deleted_at.is_not(None)
        return await self._page(
            where=trashed,
            order_by=(self._model.deleted_at.desc(), self._model.id.desc()),
            page=page,
            page_size=page_size,
        )

    async def _apply(self, stmt: Any, *, key: Any, transition: str) -> None:
        result = await self._session.execute(stmt)
        if result.rowcount != 1:
            # Missing, already in the target state, or a concurrent caller got there first.
            raise NotFoundError(f"{self._entity.label} not found")
        log.info(
            f"{self._entity.entity_type.value}.{transition}",
            key=str(key),
        )

    async def _page(self, *, where: Any, order_by: tuple[Any, ...], page: int, page_size: int) -> Page[T]:
        count_stmt = select(func.count()).select_from(self._model).where(where)
        total = int((await self._session.execute(count_stmt)).scalar_one())

        stmt = (
            select(self._model)
            .where(where)
            .order_by(*order_by)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        items = list((await self._session.execute(stmt)).scalars().all())
        return Page(items=items, total=total, page=page, page_size=page_size)

    def _check_paging(self, page: int, page_size: int) -> None:
        if page < 1:
            raise ValidationError("page must be a positive integer")
        if page_size < 1 or page_size > self._max_page_size:
            raise ValidationError(f"page_size must be between 1 and {self._max_page_size}")


def lifecycle_for(
    session: AsyncSession,
    entity_type: EntityType | str,
    *,
    max_page_size: int = DEFAULT_MAX_PAGE_SIZE,
    clock: Callable[[], datetime] = utcnow,
) -> LifecycleManager[Any]:
    try:
        entity = MANAGED_ENTITIES[EntityType(entity_type)]
    except ValueError as e:
        raise ValidationError(f"Unknown entity type: {entity_type}") from e
    return LifecycleManager(
        session=session, entity=entity, max_page_size=max_page_size, clock=clock
    )


class LifecycleService:
    """
    Entity-type keyed facade over the lifecycle managers; each call is its own
    transaction. The citizen and user services wrap the same managers when a
    transition also needs an activity row.
    """

    def __init__(
        self,
        *,
        session: AsyncSession,
        max_page_size: int = DEFAULT_MAX_PAGE_SIZE,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session = session
        self._max_page_size = max_page_size
        self._clock = clock

    def _manager(self, entity_type: EntityType | str) -> LifecycleManager[Any]:
        return lifecycle_for(
            self._session, entity_type, max_page_size=self._max_page_size, clock=self._clock
        )

    async def soft_delete(self, entity_type: EntityType | str, key: Any) -> datetime:
        deleted_at = await self._manager(entity_type).soft_delete(key)
        await self._session.commit()
        return deleted_at

    async def restore(self, entity_type: EntityType | str, key: Any) -> None:
        await self._manager(entity_type).restore(key)
        await self._session.commit()

    async def purge(self, entity_type: EntityType | str, key: Any) -> None:
        await self._manager(entity_type).purge(key)
        await self._session.commit()

    async def list_active(
        self, entity_type: EntityType | str, *, page: int = 1, page_size: int = 50
    ) -> Page[Any]:
        return await self._manager(entity_type).list_active(page=page, page_size=page_size)

    async def list_trash(
        self, entity_type: EntityType | str, *, page: int = 1, page_size: int = 50
    ) -> Page[Any]:
        return await self._manager(entity_type).list_trash(page=page, page_size=page_size)


# --- Module Notes -----------------------------------------------------------
# Purge is gated on the Trashed state; nothing removes an Active row directly.
