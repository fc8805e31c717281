"""
citizen_registry.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (e.g., JWT secret).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Registry service settings, read from `REGISTRY_*` environment variables.
    """

    model_config = SettingsConfigDict(env_prefix="REGISTRY_", case_sensitive=False)

    # dev/test auto-create tables and seed reference data on startup.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "citizen-registry"
    log_level: str = "INFO"
    log_json: bool = True

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Credential verifier (bearer JWT, `sub` = user id)
    jwt_alg: str = "HS256"
    jwt_issuer: str = "citizen-registry"
    jwt_audience: str = "citizen-registry-api"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)
    session_timeout_seconds: int = 300

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./registry.db"
    seed_on_startup: bool = True

    # Listings
    default_page_size: int = Field(default=50, ge=1)
    max_page_size: int = Field(default=100, ge=1)
    search_limit: int = Field(default=50, ge=1)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # One instance per process; create_app callers may pass their own.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Page size bounds live here so routers and the lifecycle manager agree on them.
