"""
citizen_registry.access.reference_cache

Process-wide, read-mostly snapshot of roles and the menu catalog.

Responsibilities:
- Load roles (with permission codes) and menus once, through the caller's session.
- Serve immutable snapshots to the resolver and the menu composer.
- Drop the snapshot on administrative writes (`invalidate`).
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from citizen_registry.db.repositories.reference import ReferenceRepo
from citizen_registry.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RoleSnapshot:
    id: uuid.UUID
    name: str
    description: str | None
    permission_codes: frozenset[str]


@dataclass(frozen=True, slots=True)
class MenuEntry:
    id: uuid.UUID
    name: str
    route: str | None
    icon: str | None
    parent_id: uuid.UUID | None
    order_index: int
    permission_code: str | None


@dataclass(frozen=True, slots=True)
class ReferenceSnapshot:
    roles: dict[uuid.UUID, RoleSnapshot]
    menus: tuple[MenuEntry, ...]


class ReferenceDataCache:
    def __init__(self) -> None:
        self._snapshot: ReferenceSnapshot | None = None
        self._generation = 0
        self._lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        return self._snapshot is not None

    async def snapshot(self, session: AsyncSession) -> ReferenceSnapshot:
        current = self._snapshot
        if current is not None:
            return current

        async with self._lock:
            if self._snapshot is not None:
                return self._snapshot
            generation = self._generation
            loaded = await _load(session)
            # An invalidate() that landed while we were reading makes this load stale.
            if generation == self._generation:
                self._snapshot = loaded
                log.info("reference_cache.loaded", roles=len(loaded.roles), menus=len(loaded.menus))
            return loaded

    async def role(self, session: AsyncSession, role_id: uuid.UUID) -> RoleSnapshot | None:
        return (await self.snapshot(session)).roles.get(role_id)

    async def menus(self, session: AsyncSession) -> tuple[MenuEntry, ...]:
        return (await self.snapshot(session)).menus

    def invalidate(self) -> None:
        self._generation += 1
        self._snapshot = None
        log.info("reference_cache.invalidated", generation=self._generation)


async def _load(session: AsyncSession) -> ReferenceSnapshot:
    repo = ReferenceRepo(session)
    roles = {
        r.id: RoleSnapshot(
            id=r.id,
            name=r.name.value,
            description=r.description,
            permission_codes=frozenset(p.code for p in r.permissions),
        )
        for r in await repo.list_roles()
    }
    menus = tuple(
        MenuEntry(
            id=m.id,
            name=m.name,
            route=m.route,
            icon=m.icon,
            parent_id=m.parent_id,
            order_index=m.order_index,
            permission_code=m.permission_code,
        )
        for m in await repo.list_menus()
    )
    return ReferenceSnapshot(roles=roles, menus=menus)


# --- Module Notes -----------------------------------------------------------
# One instance lives on `app.state.reference_cache`; tests build their own.
