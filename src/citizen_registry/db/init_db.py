"""
citizen_registry.db.init_db

Schema bootstrap for dev and test runs; deployed databases are migrated with Alembic.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine

from citizen_registry.db import models  # noqa: F401  # registers tables on Base.metadata
from citizen_registry.db.base import Base
from citizen_registry.observability.logging import get_logger

log = get_logger(__name__)


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)
    log.info("db.schema_ready", tables=sorted(Base.metadata.tables))
