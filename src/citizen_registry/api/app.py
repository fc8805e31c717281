"""
citizen_registry.api.app

FastAPI app factory for the citizen registry service.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Map domain errors to HTTP responses.
- Initialize and dispose shared infrastructure (DB engine, session factory, reference cache).
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from citizen_registry import __version__
from citizen_registry.access.reference_cache import ReferenceDataCache
from citizen_registry.api.routers.activities import router as activities_router
from citizen_registry.api.routers.citizens import router as citizens_router
from citizen_registry.api.routers.dev_auth import router as dev_auth_router
from citizen_registry.api.routers.health import router as health_router
from citizen_registry.api.routers.roles import router as roles_router
from citizen_registry.api.routers.session import router as session_router
from citizen_registry.api.routers.users import router as users_router
from citizen_registry.db.init_db import init_db
from citizen_registry.db.seed import seed_reference_data
from citizen_registry.db.session import create_engine, create_sessionmaker
from citizen_registry.errors import RegistryError
from citizen_registry.observability.logging import configure_logging, get_logger
from citizen_registry.observability.middleware import RequestContextMiddleware
from citizen_registry.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    configure_logging(
        service_name=settings.service_name, level=settings.log_level, json_logs=settings.log_json
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        app.state.reference_cache = ReferenceDataCache()
        if settings.env in ("dev", "test"):
            # Prod schema is managed by Alembic migrations.
            await init_db(engine)
            if settings.seed_on_startup:
                async with app.state.sessionmaker() as session:
                    await seed_reference_data(session)
        try:
            yield
        finally:
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Citizen Registry",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(dev_auth_router)
    app.include_router(session_router)
    app.include_router(citizens_router)
    app.include_router(users_router)
    app.include_router(roles_router)
    app.include_router(activities_router)

    @app.exception_handler(RegistryError)
    async def _registry_error(request: Request, exc: RegistryError) -> JSONResponse:
        log.warning(
            "request.rejected",
            error=type(exc).__name__,
            status_code=exc.status_code,
            detail=exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    return app


# --- Module Notes -----------------------------------------------------------
# Domain errors carry their own status code; only the message reaches the client.
