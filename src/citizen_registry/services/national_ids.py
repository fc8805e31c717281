"""
citizen_registry.services.national_ids

National ID allocation.

Responsibilities:
- Draw random 10-digit ids until an unused one is found.
- Fall back to the next sequential id after too many collisions.
"""

from __future__ import annotations

import secrets
from collections.abc import Callable

from citizen_registry.db.repositories.citizens import CitizenRepo
from citizen_registry.errors import ConflictError

ID_LENGTH = 10
MAX_RANDOM_ATTEMPTS = 100


def random_national_id() -> str:
    return "".join(str(secrets.randbelow(10)) for _ in range(ID_LENGTH))


async def generate_national_id(
    repo: CitizenRepo,
    *,
    draw: Callable[[], str] = random_national_id,
    max_attempts: int = MAX_RANDOM_ATTEMPTS,
) -> str:
    for _ in range(max_attempts):
        candidate = draw()
        if not await repo.national_id_exists(candidate):
            return candidate
    return await _next_sequential(repo)


async def _next_sequential(repo: CitizenRepo) -> str:
    highest = await repo.max_national_id()
    next_value = int(highest) + 1 if highest and highest.isdigit() else 1
    while next_value < 10**ID_LENGTH:
        candidate = str(next_value).zfill(ID_LENGTH)
        if not await repo.national_id_exists(candidate):
            return candidate
        next_value += 1
    raise ConflictError("No national id available")
