"""Application configuration using pydantic-settings."""

from enum import Enum
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageBackend(str, Enum):
    """Supported user record stores."""

    REDIS = "redis"
    MEMORY = "memory"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = "SignAge"
    debug: bool = False
    port: int = 5001
    log_level: str = "INFO"
    json_logs: bool = False

    # Storage
    storage_backend: StorageBackend = StorageBackend.REDIS
    redis_url: str = "redis://localhost:6379"
    store_key_prefix: str = "user"
    store_max_retries: int = 5

    # Streaks are counted in calendar days of this zone
    streak_timezone: str = "UTC"

    # Identity tokens (issued by the external auth provider)
    auth_secret_key: str = ""
    auth_algorithm: str = "HS256"
    auth_audience: str | None = None
    auth_issuer: str | None = None

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Client
    client_base_url: str = "http://localhost:5001"
    client_timeout_seconds: float = 30.0

    @model_validator(mode="after")
    def validate_required_settings(self):
        """Validate settings that would otherwise fail at request time."""
        errors = []

        try:
            ZoneInfo(self.streak_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            errors.append(f"STREAK_TIMEZONE '{self.streak_timezone}' is not a known timezone")

        if not self.auth_secret_key:
            errors.append("AUTH_SECRET_KEY is required")
        if self.store_max_retries < 1:
            errors.append("STORE_MAX_RETRIES must be at least 1")
        if self.storage_backend == StorageBackend.REDIS and not self.redis_url:
            errors.append("REDIS_URL is required when using the redis backend")

        if errors:
            raise ValueError(f"Configuration errors: {'; '.join(errors)}")

        return self

    @property
    def streak_zone(self) -> ZoneInfo:
        return ZoneInfo(self.streak_timezone)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
