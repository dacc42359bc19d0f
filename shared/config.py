"""
Application settings loaded from environment variables.

Uses pydantic-settings so every knob can be overridden from the
environment or a local .env file.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────
    APP_NAME: str = "DreamEvents"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    DATA_DIR: Optional[str] = None

    # ── Booking input ────────────────────────────────────────
    PHONE_COUNTRY_CODE: str = "+91"

    # ── Notifications ────────────────────────────────────────
    NOTIFICATION_WRITE_ATTEMPTS: int = 3
    NOTIFICATION_RETRY_BASE_SECONDS: float = 1.0
    OUTBOX_MAX_ATTEMPTS: int = 5
    ADVISORY_WAIT_SECONDS: float = 2.0

    # ── Push ─────────────────────────────────────────────────
    PUSH_ENDPOINT_URL: str = ""
    PUSH_TIMEOUT_SECONDS: float = 10.0

    # ── Email ────────────────────────────────────────────────
    EMAIL_FROM: str = "notifications@dreamevents.example"

    # ── Geocoding ────────────────────────────────────────────
    GEOCODING_PROVIDER: str = "nominatim"
    GEOCODING_BASE_URL: Optional[str] = None  # provider default when unset
    GEOCODING_API_KEY: str = ""
    GEOCODING_USER_AGENT: str = "DreamEvents/1.0"
    GEOCODING_RESULT_LIMIT: int = 6
    GEOCODING_TIMEOUT_SECONDS: float = 10.0


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
