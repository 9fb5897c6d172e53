"""
Configuration and settings for the hello API service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = Field(default="", validation_alias="API_PREFIX")

    # Database (Postgres expected, any SQLAlchemy URL works)
    database_url: Optional[str] = Field(default=None, validation_alias="DATABASE_URL")
    max_connections: int = Field(default=20, ge=1, validation_alias="DB_MAX_CONNECTIONS")
    pool_timeout_seconds: float = Field(
        default=30.0, gt=0, validation_alias="DB_POOL_TIMEOUT_SECONDS"
    )

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, validation_alias="HELLO_API_USE_IN_MEMORY_BACKENDS"
    )

    # Server
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=3000, validation_alias="PORT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
