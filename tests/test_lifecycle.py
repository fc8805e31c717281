"""
tests.test_lifecycle

Soft delete, restore and permanent delete across lifecycle-managed entities.

Responsibilities:
- Exercise trash listing, restore and purge for citizens and users.
- Ensure misplaced lifecycle actions fail without side effects.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from citizen_registry.db.models import Activity, Citizen, User
from citizen_registry.errors import NotFoundError, ValidationError
from citizen_registry.services.citizens import CitizenDraft, CitizenService
from citizen_registry.services.lifecycle import EntityType, LifecycleService, lifecycle_for

from conftest import user_named


def draft(first: str = "Amina", last: str = "Warsame") -> CitizenDraft:
    return CitizenDraft(
        first_name=first,
        last_name=last,
        gender="FEMALE",
        date_of_birth=date(1990, 5, 17),
        place_of_birth="Mogadishu",
    )


async def register(session: AsyncSession, *names: str) -> list[Citizen]:
    admin = await user_named(session, "admin")
    svc = CitizenService(session=session)
    return [await svc.register(draft(first=n), actor_id=admin.id) for n in names]


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.mark.asyncio
async def test_soft_delete_moves_between_views_and_restore_reverses(session: AsyncSession) -> None:
    (citizen,) = await register(session, "Hodan")
    svc = LifecycleService(session=session)

    await svc.soft_delete(EntityType.citizen, citizen.national_id)
    active = await svc.list_active(EntityType.citizen)
    trash = await svc.list_trash(EntityType.citizen)
    assert citizen.national_id not in {c.national_id for c in active.items}
    assert [c.national_id for c in trash.items] == [citizen.national_id]

    await svc.restore(EntityType.citizen, citizen.national_id)
    active = await svc.list_active(EntityType.citizen)
    trash = await svc.list_trash(EntityType.citizen)
    assert citizen.national_id in {c.national_id for c in active.items}
    assert trash.total == 0


@pytest.mark.asyncio
async def test_second_soft_delete_fails_and_keeps_deleted_at(session: AsyncSession) -> None:
    (citizen,) = await register(session, "Hodan")
    manager = lifecycle_for(session, EntityType.citizen)
    first = await manager.soft_delete(citizen.national_id)
    await session.commit()

    with pytest.raises(NotFoundError):
        await manager.soft_delete(citizen.national_id)

    trashed = await manager.get_trashed(citizen.national_id)
    assert trashed is not None
    assert trashed.deleted_at == first


@pytest.mark.asyncio
async def test_second_soft_delete_logs_no_activity(session: AsyncSession) -> None:
    (citizen,) = await register(session, "Hodan")
    admin = await user_named(session, "admin")
    svc = CitizenService(session=session)
    await svc.soft_delete(citizen.national_id, actor_id=admin.id)
    with pytest.raises(NotFoundError):
        await svc.soft_delete(citizen.national_id, actor_id=admin.id)
    await session.rollback()

    count = await session.scalar(
        select(func.count()).select_from(Activity).where(Activity.action == "DELETE_CITIZEN")
    )
    assert count == 1


@pytest.mark.asyncio
async def test_restore_requires_trashed_row(session: AsyncSession) -> None:
    (citizen,) = await register(session, "Hodan")
    with pytest.raises(NotFoundError):
        await LifecycleService(session=session).restore(EntityType.citizen, citizen.national_id)


@pytest.mark.asyncio
async def test_purge_only_from_trash(session: AsyncSession) -> None:
    (citizen,) = await register(session, "Hodan")
    svc = LifecycleService(session=session)

    with pytest.raises(NotFoundError):
        await svc.purge(EntityType.citizen, citizen.national_id)

    await svc.soft_delete(EntityType.citizen, citizen.national_id)
    await svc.purge(EntityType.citizen, citizen.national_id)
    remaining = await session.scalar(
        select(func.count()).select_from(Citizen).where(Citizen.national_id == citizen.national_id)
    )
    assert remaining == 0

    with pytest.raises(NotFoundError):
        await svc.purge(EntityType.citizen, citizen.national_id)


@pytest.mark.asyncio
async def test_missing_key_is_not_found(session: AsyncSession) -> None:
    with pytest.raises(NotFoundError):
        await LifecycleService(session=session).soft_delete(EntityType.citizen, "0000000000")


@pytest.mark.asyncio
async def test_users_share_the_same_lifecycle(session: AsyncSession) -> None:
    officer = await user_named(session, "officer1")
    svc = LifecycleService(session=session)
    await svc.soft_delete("user", officer.id)
    trash = await svc.list_trash("user")
    assert [u.username for u in trash.items] == ["officer1"]
    active = await svc.list_active("user")
    assert "officer1" not in {u.username for u in active.items}


@pytest.mark.asyncio
async def test_unknown_entity_type_is_rejected(session: AsyncSession) -> None:
    with pytest.raises(ValidationError):
        lifecycle_for(session, "notice")


@pytest.mark.asyncio
async def test_trash_listing_is_newest_deleted_first(session: AsyncSession) -> None:
    citizens = await register(session, "Ayaan", "Bashir", "Cawo")
    manager = lifecycle_for(session, EntityType.citizen, clock=_Clock())
    for c in citizens:
        await manager.soft_delete(c.national_id)
    await session.commit()

    trash = await manager.list_trash(page=1, page_size=10)
    assert [c.first_name for c in trash.items] == ["Cawo", "Bashir", "Ayaan"]


@pytest.mark.asyncio
async def test_paging_splits_results(session: AsyncSession) -> None:
    await register(session, "Ayaan", "Bashir", "Cawo")
    manager = lifecycle_for(session, EntityType.citizen)

    first = await manager.list_active(page=1, page_size=2)
    second = await manager.list_active(page=2, page_size=2)
    assert (first.total, first.pages, len(first.items)) == (3, 2, 2)
    assert len(second.items) == 1
    seen = {c.national_id for c in first.items} | {c.national_id for c in second.items}
    assert len(seen) == 3


@pytest.mark.asyncio
@pytest.mark.parametrize(("page", "page_size"), [(0, 10), (1, 0), (1, 101)])
async def test_bad_paging_is_rejected(session: AsyncSession, page: int, page_size: int) -> None:
    manager = lifecycle_for(session, EntityType.user)
    with pytest.raises(ValidationError):
        await manager.list_active(page=page, page_size=page_size)


@pytest.mark.asyncio
async def test_empty_listing_has_zero_pages(session: AsyncSession) -> None:
    page = await lifecycle_for(session, EntityType.citizen).list_trash(page=1, page_size=5)
    assert (page.items, page.total, page.pages) == ([], 0, 0)


@pytest.mark.asyncio
async def test_user_listing_loads_roles(session: AsyncSession) -> None:
    page = await lifecycle_for(session, EntityType.user).list_active(page=1, page_size=10)
    roles = {u.username: u.role.name.value for u in page.items if isinstance(u, User)}
    assert roles == {"admin": "ADMIN", "officer1": "OFFICER"}


# --- Module Notes -----------------------------------------------------------
# New lifecycle entity types need a case here alongside their registration.
