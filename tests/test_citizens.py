"""
tests.test_citizens

Citizen registration, search and updates.

Responsibilities:
- Validate citizen drafts and national id assignment.
- Check search matching, including literal wildcard characters.
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from citizen_registry.db.models import CitizenStatus, Gender
from citizen_registry.db.repositories.citizens import CitizenRepo
from citizen_registry.errors import NotFoundError, ValidationError
from citizen_registry.services.activity import ActivityService, RequestMeta
from citizen_registry.services.citizens import CitizenDraft, CitizenService
from citizen_registry.services.national_ids import ID_LENGTH, generate_national_id
from citizen_registry.services.validation import validate_birth_date

from conftest import user_named


def draft(**overrides) -> CitizenDraft:
    values = {
        "first_name": "Abdi",
        "middle_name": "Hassan",
        "last_name": "Nur",
        "gender": "male",
        "date_of_birth": date(1985, 7, 1),
        "place_of_birth": "Kismayo",
    }
    values.update(overrides)
    return CitizenDraft(**values)


@pytest.mark.asyncio
async def test_register_assigns_national_id_and_defaults(session: AsyncSession) -> None:
    admin = await user_named(session, "admin")
    meta = RequestMeta(ip_address="10.0.0.7", user_agent="pytest")
    citizen = await CitizenService(session=session).register(draft(), actor_id=admin.id, meta=meta)

    assert len(citizen.national_id) == ID_LENGTH and citizen.national_id.isdigit()
    assert citizen.gender is Gender.male
    assert citizen.status is CitizenStatus.active
    assert citizen.nationality == "Somali"
    assert citizen.full_name == "Abdi Hassan Nur"

    (activity,) = await ActivityService(session).for_entity("citizen", citizen.national_id)
    assert activity.action == "CREATE_CITIZEN"
    assert activity.user_id == admin.id
    assert activity.ip_address == "10.0.0.7"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"first_name": "  "},
        {"gender": "OTHER"},
        {"date_of_birth": date.today() + timedelta(days=1)},
        {"date_of_birth": date(1900, 1, 1)},
        {"place_of_birth": "x" * 201},
    ],
)
async def test_register_rejects_invalid_fields(session: AsyncSession, overrides: dict) -> None:
    admin = await user_named(session, "admin")
    with pytest.raises(ValidationError):
        await CitizenService(session=session).register(draft(**overrides), actor_id=admin.id)


def test_birth_date_bound_handles_leap_day() -> None:
    assert validate_birth_date(date(1924, 2, 29), today=date(2024, 2, 29)) == date(1924, 2, 29)
    with pytest.raises(ValidationError):
        validate_birth_date(date(1923, 2, 28), today=date(2023, 3, 1))


@pytest.mark.asyncio
async def test_search_matches_id_and_names_case_insensitively(session: AsyncSession) -> None:
    admin = await user_named(session, "admin")
    svc = CitizenService(session=session)
    abdi = await svc.register(draft(), actor_id=admin.id)
    await svc.register(draft(first_name="Sahra", middle_name=None, last_name="Ali"), actor_id=admin.id)

    assert [c.national_id for c in await svc.search("hassan")] == [abdi.national_id]
    assert [c.national_id for c in await svc.search(abdi.national_id)] == [abdi.national_id]

    await svc.soft_delete(abdi.national_id, actor_id=admin.id)
    assert await svc.search("hassan") == []


@pytest.mark.asyncio
async def test_search_treats_like_wildcards_literally(session: AsyncSession) -> None:
    admin = await user_named(session, "admin")
    svc = CitizenService(session=session)
    await svc.register(draft(), actor_id=admin.id)
    underscored = await svc.register(
        draft(first_name="Nur_Hodan", middle_name=None, last_name="Ali"), actor_id=admin.id
    )

    assert await svc.search("%") == []
    assert [c.national_id for c in await svc.search("_")] == [underscored.national_id]
    assert [c.national_id for c in await svc.search("r_h")] == [underscored.national_id]


@pytest.mark.asyncio
async def test_update_is_partial(session: AsyncSession) -> None:
    admin = await user_named(session, "admin")
    svc = CitizenService(session=session)
    citizen = await svc.register(draft(), actor_id=admin.id)

    updated = await svc.update(
        citizen.national_id, {"last_name": "Farah", "middle_name": None}, actor_id=admin.id
    )
    assert (updated.first_name, updated.middle_name, updated.last_name) == ("Abdi", None, "Farah")


@pytest.mark.asyncio
async def test_restore_brings_citizen_back(session: AsyncSession) -> None:
    admin = await user_named(session, "admin")
    svc = CitizenService(session=session)
    citizen = await svc.register(draft(), actor_id=admin.id)

    await svc.soft_delete(citizen.national_id, actor_id=admin.id)
    with pytest.raises(NotFoundError):
        await svc.get(citizen.national_id)

    restored = await svc.restore(citizen.national_id, actor_id=admin.id)
    assert restored.deleted_at is None
    actions = [a.action for a in await ActivityService(session).for_entity("citizen", citizen.national_id)]
    assert set(actions) == {"CREATE_CITIZEN", "DELETE_CITIZEN", "RESTORE_CITIZEN"}


@pytest.mark.asyncio
async def test_national_id_falls_back_to_sequence_after_collisions(session: AsyncSession) -> None:
    admin = await user_named(session, "admin")
    svc = CitizenService(session=session)
    existing = await svc.register(draft(), actor_id=admin.id)

    candidate = await generate_national_id(
        CitizenRepo(session), draw=lambda: existing.national_id, max_attempts=3
    )
    assert candidate != existing.national_id
    assert candidate == str(int(existing.national_id) + 1).zfill(ID_LENGTH)


# --- Module Notes -----------------------------------------------------------
# Search cases cover literal matching of LIKE wildcard characters.
