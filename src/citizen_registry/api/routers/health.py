"""
citizen_registry.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Liveness probe (`/healthz`).
- Readiness probe (`/readyz`): DB round-trip plus a warm reference cache.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from citizen_registry.access.reference_cache import ReferenceDataCache
from citizen_registry.api.deps import db_session, reference_cache_dep

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(
    session: AsyncSession = Depends(db_session),
    cache: ReferenceDataCache = Depends(reference_cache_dep),
) -> dict[str, str]:
    await session.execute(text("SELECT 1"))
    # Loads roles and menus once; later requests read the snapshot.
    await cache.snapshot(session)
    return {"status": "ready"}
