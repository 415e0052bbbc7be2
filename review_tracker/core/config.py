"""Application configuration using Pydantic Settings."""

import json
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SLACK_MESSAGE_TEMPLATE = "Review requested: {title}\n{url}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    # Application
    app_name: str = "Review Tracker"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"

    # API
    api_prefix: str = "/api"
    allowed_origins_str: str = Field(
        default="http://localhost:5173,http://localhost:5174",
        alias="ALLOWED_ORIGINS",
    )

    @property
    def allowed_origins(self) -> list[str]:
        """Parse allowed origins from a comma separated or JSON list string."""
        origins = self.allowed_origins_str
        if origins.startswith("["):
            try:
                return json.loads(origins)
            except json.JSONDecodeError:
                pass
        return [o.strip() for o in origins.split(",") if o.strip()]

    # Database
    database_url: str = Field(
        default="postgresql://user:password@db:5432/review_management"
    )
    database_pool_size: int = Field(default=5, ge=1, le=50)
    database_max_overflow: int = Field(default=10, ge=0, le=100)
    database_echo: bool = False  # Log SQL queries
    db_connect_retries: int = Field(default=5, ge=0)
    db_connect_retry_delay_seconds: float = Field(default=5.0, ge=0)

    # Identity
    auth_mode: Literal["header", "token"] = "header"
    secret_key: str = Field(default="change-me-in-production-use-strong-random-key")
    access_token_expire_minutes: int = Field(default=60 * 8, ge=5)

    # Fallbacks used while the global_settings row does not exist
    default_service_domain: str = "http://localhost:5174"
    default_reviewer_count: int = Field(default=3, ge=0)
    default_slack_message_template: str = DEFAULT_SLACK_MESSAGE_TEMPLATE

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def database_url_async(self) -> str:
        """Get async database URL (uses asyncpg for PostgreSQL)."""
        url = self.database_url
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
