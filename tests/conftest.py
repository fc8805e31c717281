"""
tests.conftest

Shared fixtures: an in-memory database seeded with the reference data, a fresh
reference cache, and a booted app with a bearer-token helper.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import timedelta

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from citizen_registry.access.reference_cache import ReferenceDataCache
from citizen_registry.api.app import create_app
from citizen_registry.auth.jwt import JwtConfig, issue_token
from citizen_registry.db.init_db import init_db
from citizen_registry.db.models import RoleName, User
from citizen_registry.db.repositories.reference import ReferenceRepo
from citizen_registry.db.repositories.users import UserRepo
from citizen_registry.db.seed import seed_reference_data
from citizen_registry.db.session import create_engine, create_sessionmaker
from citizen_registry.settings import Settings

MEMORY_URL = "sqlite+aiosqlite:///:memory:"


def settings_for_tests(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "env": "test",
        "database_url": MEMORY_URL,
        "jwt_secret": "test-secret",
    }
    values.update(overrides)
    return Settings(**values)


@pytest_asyncio.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    eng = create_engine(settings_for_tests())
    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_sessionmaker(engine)


@pytest_asyncio.fixture
async def session(sessionmaker: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with sessionmaker() as s:
        await seed_reference_data(s)
        yield s


@pytest.fixture
def cache() -> ReferenceDataCache:
    return ReferenceDataCache()


async def user_named(session: AsyncSession, username: str) -> User:
    return (await session.execute(select(User).where(User.username == username))).scalar_one()


async def make_user(session: AsyncSession, username: str, role: RoleName) -> User:
    role_row = await ReferenceRepo(session).get_role_by_name(role)
    assert role_row is not None
    user = await UserRepo(session).create(username=username, role_id=role_row.id)
    await session.commit()
    return user


@pytest_asyncio.fixture
async def app() -> AsyncIterator[FastAPI]:
    application = create_app(settings=settings_for_tests())
    # httpx ASGITransport does not drive lifespan events; enter the context explicitly.
    async with application.router.lifespan_context(application):
        yield application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


class TokenFactory:
    def __init__(self, app: FastAPI) -> None:
        self._app = app

    async def user(self, username: str) -> User:
        async with self._app.state.sessionmaker() as s:
            return await user_named(s, username)

    async def add_user(self, username: str, role: RoleName) -> User:
        async with self._app.state.sessionmaker() as s:
            return await make_user(s, username, role)

    def headers_for(self, user: User) -> dict[str, str]:
        token = issue_token(
            cfg=JwtConfig.from_settings(self._app.state.settings),
            subject=user.id,
            ttl=timedelta(minutes=5),
        )
        return {"Authorization": f"Bearer {token}"}

    async def headers(self, username: str) -> dict[str, str]:
        return self.headers_for(await self.user(username))


@pytest.fixture
def tokens(app: FastAPI) -> TokenFactory:
    return TokenFactory(app)


# --- Module Notes -----------------------------------------------------------
# Every test gets its own in-memory database; fixtures never share state.
