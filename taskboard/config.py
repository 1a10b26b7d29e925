"""Application configuration using pydantic-settings.

Values come from ``TASKBOARD_*`` environment variables or a local ``.env``.
Consumers call ``get_settings()`` for a cached instance; tests construct
``Settings(...)`` directly.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TASKBOARD_",
        env_file=".env",
        extra="ignore",
    )

    database_url: str = "sqlite:///./taskboard.db"
    database_echo: bool = False
    log_level: str = "INFO"

    api_base_url: str = "http://localhost:8000/v1"
    api_timeout: float = 10.0

    # Pointer travel in px before a press becomes a drag.
    activation_distance: float = Field(default=5.0, ge=0)
    revert_on_failure: bool = False

    audit_default_limit: int = Field(default=15, ge=1, le=200)


@lru_cache
def get_settings() -> Settings:
    return Settings()
