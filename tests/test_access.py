"""
tests.test_access

Permission resolution and access guard decisions over the seeded roles.

Responsibilities:
- Check that resolved permissions follow role grants and any listed code suffices.
- Ensure disabled, trashed and unknown principals are denied.
"""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from citizen_registry.access.guard import AccessDecision, AccessGuard
from citizen_registry.access.permissions import PermissionResolver
from citizen_registry.access.reference_cache import ReferenceDataCache
from citizen_registry.auth.models import Principal
from citizen_registry.db.base import utcnow
from citizen_registry.db.models import AccountStatus, RoleName
from citizen_registry.db.seed import ALL_CODES, ROLE_GRANTS
from citizen_registry.errors import ForbiddenError

from conftest import make_user, user_named


def _guard(session: AsyncSession, cache: ReferenceDataCache) -> AccessGuard:
    return AccessGuard(resolver=PermissionResolver(session=session, cache=cache))


@pytest.mark.asyncio
@pytest.mark.parametrize("role", list(RoleName))
async def test_resolved_permissions_equal_role_grants(
    session: AsyncSession, cache: ReferenceDataCache, role: RoleName
) -> None:
    user = await make_user(session, f"user_{role.value.lower()}", role)
    resolver = PermissionResolver(session=session, cache=cache)
    assert await resolver.resolve_permissions(user.id) == ROLE_GRANTS[role][1]


@pytest.mark.asyncio
async def test_unknown_principal_resolves_to_nothing(
    session: AsyncSession, cache: ReferenceDataCache
) -> None:
    resolver = PermissionResolver(session=session, cache=cache)
    assert await resolver.resolve_permissions(uuid.uuid4()) == frozenset()


@pytest.mark.asyncio
async def test_trashed_principal_resolves_to_nothing(
    session: AsyncSession, cache: ReferenceDataCache
) -> None:
    officer = await user_named(session, "officer1")
    officer.deleted_at = utcnow()
    await session.commit()
    resolver = PermissionResolver(session=session, cache=cache)
    assert await resolver.resolve_permissions(officer.id) == frozenset()


@pytest.mark.asyncio
async def test_disabled_admin_is_denied_everything(
    session: AsyncSession, cache: ReferenceDataCache
) -> None:
    admin = await user_named(session, "admin")
    principal = Principal(
        user_id=admin.id,
        username=admin.username,
        role_id=admin.role_id,
        status=AccountStatus.disabled,
    )
    guard = _guard(session, cache)
    for code in sorted(ALL_CODES):
        assert await guard.authorize(principal, code) is AccessDecision.deny
    assert await guard.authorize(principal) is AccessDecision.deny


@pytest.mark.asyncio
async def test_inactive_principal_short_circuits_resolution(
    session: AsyncSession, cache: ReferenceDataCache
) -> None:
    principal = Principal(
        user_id=uuid.uuid4(),
        username="ghost",
        role_id=None,
        status=AccountStatus.active,
        deleted_at=utcnow(),
    )
    assert await _guard(session, cache).authorize(principal, "VIEW_CITIZEN") is AccessDecision.deny
    assert not cache.loaded


@pytest.mark.asyncio
async def test_empty_requirement_allows_active_principal(
    session: AsyncSession, cache: ReferenceDataCache
) -> None:
    viewer = await make_user(session, "viewer1", RoleName.viewer)
    decision = await _guard(session, cache).authorize(Principal.from_user(viewer), ())
    assert decision is AccessDecision.allow


@pytest.mark.asyncio
async def test_any_single_required_code_is_enough(
    session: AsyncSession, cache: ReferenceDataCache
) -> None:
    officer = Principal.from_user(await user_named(session, "officer1"))
    guard = _guard(session, cache)
    assert await guard.authorize(officer, ["MANAGE_USERS", "VIEW_REPORTS"]) is AccessDecision.allow
    assert await guard.authorize(officer, ["MANAGE_USERS", "DELETE_CITIZEN"]) is AccessDecision.deny


@pytest.mark.asyncio
async def test_no_principal_is_denied(session: AsyncSession, cache: ReferenceDataCache) -> None:
    assert await _guard(session, cache).authorize(None, ()) is AccessDecision.deny


@pytest.mark.asyncio
async def test_ensure_authorized_raises_forbidden(
    session: AsyncSession, cache: ReferenceDataCache
) -> None:
    officer = Principal.from_user(await user_named(session, "officer1"))
    with pytest.raises(ForbiddenError):
        await _guard(session, cache).ensure_authorized(officer, "MANAGE_USERS")


@pytest.mark.asyncio
async def test_cache_serves_snapshot_until_invalidated(
    session: AsyncSession, cache: ReferenceDataCache
) -> None:
    first = await cache.snapshot(session)
    assert await cache.snapshot(session) is first
    cache.invalidate()
    assert not cache.loaded
    assert await cache.snapshot(session) is not first


# --- Module Notes -----------------------------------------------------------
# Guard checks read through the reference cache; tests use a fresh cache per case.
