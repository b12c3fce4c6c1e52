"""
orchestra_console.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for the gateway, storage and wizard.
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Single settings object injected into every component that needs configuration.
    """

    model_config = SettingsConfigDict(env_prefix="ORCHESTRA_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "orchestra-console"
    log_level: str = "INFO"

    # Backend REST boundary
    api_base_url: str = "http://localhost:8080/api/v1"
    request_timeout_seconds: float = Field(default=30.0, gt=0)

    # Client-side persisted state (credential + cached principal)
    storage_url: str = "sqlite+aiosqlite:///./orchestra_console.db"

    # Dashboard refresh cadence
    metrics_refresh_seconds: float = Field(default=30.0, gt=0)

    # Deployment wizard defaults
    docker_build_type: str = "docker"
    default_branch: str = "main"
    default_app_type: str = "web_service"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars on every component construction.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Components receive `Settings` explicitly; `get_settings()` is only used at the
# composition root.
