"""Application configuration loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings. Every field can be set from the environment or .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"

    # Durable store (PostgreSQL in production, SQLite for local runs)
    database_url: str = "sqlite+aiosqlite:///./mastery_engine.db"

    # Database Pool Settings (ignored for SQLite)
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600  # Recycle connections after 1 hour

    # Notification sink
    redis_url: str = "redis://localhost:6379"
    notification_channel: str = "mastery:notifications"

    # Store write retries (exponential backoff)
    store_max_retries: int = Field(default=3, ge=1)
    store_retry_base_delay_seconds: float = Field(default=0.5, ge=0.0)

    # Optimistic concurrency: how often a read-modify-write is replayed
    max_conflict_retries: int = Field(default=3, ge=1)

    # Optional JSON catalog replacing the built-in one
    catalog_path: str | None = None

    # Feature Flags (can also be set via FF_* env vars)
    ff_use_database_persistence: bool = False
    ff_enable_redis_notifications: bool = False

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured database is SQLite (no connection pool options)."""
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
