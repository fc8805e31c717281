"""
citizen_registry.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, DB sessions and the reference cache.
- Encapsulate app.state access patterns (engine/sessionmaker/cache).
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass

from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from citizen_registry.access.reference_cache import ReferenceDataCache
from citizen_registry.services.activity import RequestMeta
from citizen_registry.settings import Settings, get_settings


def settings_dep(request: Request) -> Settings:
    # Set by create_app; falls back to the process-wide settings.
    return getattr(request.app.state, "settings", None) or get_settings()


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # Created by the app lifespan in `citizen_registry.api.app.create_app`.
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


def reference_cache_dep(request: Request) -> ReferenceDataCache:
    return request.app.state.reference_cache  # type: ignore[attr-defined]


def request_meta(request: Request) -> RequestMeta:
    return RequestMeta(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


@dataclass(frozen=True, slots=True)
class Paging:
    page: int
    page_size: int


def paging(
    page: int = Query(default=1),
    page_size: int | None = Query(default=None, alias="pageSize"),
    settings: Settings = Depends(settings_dep),
) -> Paging:
    # Bounds are checked by the lifecycle manager.
    size = settings.default_page_size if page_size is None else page_size
    return Paging(page=page, page_size=size)


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Commit/rollback is managed explicitly by the service layer.
    async with session_factory() as session:
        yield session


# --- Module Notes -----------------------------------------------------------
# FastAPI caches dependencies per request, so the auth guard and the endpoint share
# the same session instance.
