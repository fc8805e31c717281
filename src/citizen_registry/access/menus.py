"""
citizen_registry.access.menus

Navigation menu composition.

Responsibilities:
- Filter the menu catalog down to entries a set of permission codes can see.
- Assemble the filtered entries into an ordered forest via their parent pointers.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from citizen_registry.access.permissions import PermissionResolver
from citizen_registry.access.reference_cache import MenuEntry, ReferenceDataCache


@dataclass(slots=True)
class MenuNode:
    id: uuid.UUID
    label: str
    route: str | None
    icon: str | None
    order_index: int
    children: list[MenuNode] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        # Field names are what the frontend reads; `label` is the menu's display name.
        return {
            "id": str(self.id),
            "label": self.label,
            "route": self.route,
            "icon": self.icon,
            "orderIndex": self.order_index,
            "children": [c.as_dict() for c in self.children],
        }


def compose_menu(catalog: Sequence[MenuEntry], granted_codes: Iterable[str]) -> list[MenuNode]:
    """
    Build the menu forest visible to `granted_codes`.

    Entries without a permission code are always kept. An entry whose parent was
    filtered out is promoted to a root rather than dropped, so an authorized
    sub-item never disappears because its parent is hidden. Siblings are ordered by
    `order_index`; ties keep catalog order (the sort is stable).
    """

    granted = frozenset(granted_codes)
    visible = [e for e in catalog if e.permission_code is None or e.permission_code in granted]

    nodes: dict[uuid.UUID, MenuNode] = {
        e.id: MenuNode(
            id=e.id,
            label=e.name,
            route=e.route,
            icon=e.icon,
            order_index=e.order_index,
        )
        for e in visible
    }
    parents = {e.id: e.parent_id for e in visible}

    roots: list[MenuNode] = []
    for entry in visible:
        node = nodes[entry.id]
        parent_id = entry.parent_id
        if parent_id is not None and parent_id in nodes and not _loops_back(entry.id, parents):
            nodes[parent_id].children.append(node)
        else:
            roots.append(node)

    _sort_forest(roots)
    return roots


def _loops_back(start: uuid.UUID, parents: dict[uuid.UUID, uuid.UUID | None]) -> bool:
    # True when following parent pointers from `start` returns to `start`.
    seen: set[uuid.UUID] = set()
    current = parents.get(start)
    while current is not None and current in parents:
        if current == start:
            return True
        if current in seen:
            return False
        seen.add(current)
        current = parents.get(current)
    return False


def _sort_forest(nodes: list[MenuNode]) -> None:
    stack = [nodes]
    while stack:
        level = stack.pop()
        level.sort(key=lambda n: n.order_index)
        stack.extend(n.children for n in level if n.children)


class MenuComposer:
    def __init__(
        self,
        *,
        session: AsyncSession,
        cache: ReferenceDataCache,
        resolver: PermissionResolver | None = None,
    ) -> None:
        self._session = session
        self._cache = cache
        self._resolver = resolver or PermissionResolver(session=session, cache=cache)

    async def menus_for(self, granted_codes: Iterable[str]) -> list[MenuNode]:
        return compose_menu(await self._cache.menus(self._session), granted_codes)

    async def menus_for_principal(self, principal_id: uuid.UUID) -> list[MenuNode]:
        granted = await self._resolver.resolve_permissions(principal_id)
        if not granted:
            # A principal that resolves to nothing sees nothing, not even open entries.
            return []
        return await self.menus_for(granted)


# --- Module Notes -----------------------------------------------------------
# The store only holds parent pointers; tree assembly happens here, per call, over an
# immutable catalog snapshot.
