"""
citizen_registry.db.seed

Reference data and default accounts.

Responsibilities:
- Upsert the permission catalog, the three roles and their permission sets.
- Upsert the navigation menu catalog (Add Citizen nests under Citizens).
- Create the default `admin` and `officer1` users when missing.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from citizen_registry.db.models import AccountStatus, Menu, Permission, Role, RoleName, User
from citizen_registry.observability.logging import get_logger

log = get_logger(__name__)

PERMISSIONS: tuple[tuple[str, str, str], ...] = (
    ("MANAGE_USERS", "Manage Users", "Create, update, and delete system users"),
    ("VIEW_CITIZEN", "View Citizens", "View citizen records"),
    ("CREATE_CITIZEN", "Create Citizens", "Register new citizens"),
    ("UPDATE_CITIZEN", "Update Citizens", "Update citizen information"),
    ("DELETE_CITIZEN", "Delete Citizens", "Delete citizen records"),
    ("VIEW_DASHBOARD", "View Dashboard", "Access dashboard statistics"),
    ("VIEW_REPORTS", "View Reports", "Access system reports"),
    ("MANAGE_NOTICES", "Manage Notices", "Create and manage system notices"),
    ("VIEW_ACTIVITIES", "View Activities", "View system activity logs"),
)

ALL_CODES = frozenset(code for code, _, _ in PERMISSIONS)

ROLE_GRANTS: dict[RoleName, tuple[str, frozenset[str]]] = {
    RoleName.admin: ("System Administrator with full access", ALL_CODES),
    RoleName.officer: (
        "Registration Officer with citizen management access",
        frozenset(
            {"VIEW_CITIZEN", "CREATE_CITIZEN", "UPDATE_CITIZEN", "VIEW_DASHBOARD", "VIEW_REPORTS"}
        ),
    ),
    RoleName.viewer: (
        "View-only access to citizen records",
        frozenset({"VIEW_CITIZEN", "VIEW_DASHBOARD"}),
    ),
}


@dataclass(frozen=True, slots=True)
class MenuSeed:
    name: str
    route: str
    icon: str
    order_index: int
    permission_code: str | None
    parent: str | None = None


MENUS: tuple[MenuSeed, ...] = (
    MenuSeed("Dashboard", "/dashboard", "home", 1, "VIEW_DASHBOARD"),
    MenuSeed("Citizens", "/citizens", "users", 2, "VIEW_CITIZEN"),
    MenuSeed("Add Citizen", "/citizens/create", "user-plus", 3, "CREATE_CITIZEN", parent="Citizens"),
    MenuSeed("Reports", "/reports", "bar-chart", 4, "VIEW_REPORTS"),
    MenuSeed("User Management", "/users", "settings", 5, "MANAGE_USERS"),
)

DEFAULT_USERS: tuple[tuple[str, RoleName], ...] = (
    ("admin", RoleName.admin),
    ("officer1", RoleName.officer),
)


async def seed_reference_data(session: AsyncSession, *, with_default_users: bool = True) -> None:
    """Idempotent: safe to run on every startup."""

    permissions = await _seed_permissions(session)
    roles = await _seed_roles(session, permissions)
    await _seed_menus(session)
    if with_default_users:
        await _seed_users(session, roles)
    await session.commit()
    log.info("seed.completed", permissions=len(permissions), roles=len(roles), menus=len(MENUS))


async def _seed_permissions(session: AsyncSession) -> dict[str, Permission]:
    existing = {p.code: p for p in (await session.execute(select(Permission))).scalars()}
    for code, name, description in PERMISSIONS:
        perm = existing.get(code)
        if perm is None:
            perm = Permission(code=code, name=name, description=description)
            session.add(perm)
            existing[code] = perm
        else:
            perm.name = name
            perm.description = description
    await session.flush()
    return existing


async def _seed_roles(
    session: AsyncSession, permissions: dict[str, Permission]
) -> dict[RoleName, Role]:
    stmt = select(Role)
    existing = {r.name: r for r in (await session.execute(stmt)).scalars()}
    for name, (description, codes) in ROLE_GRANTS.items():
        role = existing.get(name)
        if role is None:
            # Existing roles keep their current grants.
            role = Role(name=name, description=description)
            role.permissions = [permissions[c] for c in sorted(codes)]
            session.add(role)
            existing[name] = role
        role.description = description
    await session.flush()
    return existing


async def _seed_menus(session: AsyncSession) -> None:
    existing = {m.name: m for m in (await session.execute(select(Menu))).scalars()}
    for seed in MENUS:
        menu = existing.get(seed.name)
        if menu is None:
            menu = Menu(name=seed.name)
            session.add(menu)
            existing[seed.name] = menu
        menu.route = seed.route
        menu.icon = seed.icon
        menu.order_index = seed.order_index
        menu.permission_code = seed.permission_code
    await session.flush()

    for seed in MENUS:
        existing[seed.name].parent_id = existing[seed.parent].id if seed.parent else None
    await session.flush()


async def _seed_users(session: AsyncSession, roles: dict[RoleName, Role]) -> None:
    for username, role_name in DEFAULT_USERS:
        found = (
            await session.execute(select(User.id).where(User.username == username))
        ).first()
        if found is not None:
            continue
        session.add(
            User(
                username=username,
                role_id=roles[role_name].id,
                status=AccountStatus.active,
            )
        )
        log.info("seed.user_created", username=username, role=role_name.value)
    await session.flush()
