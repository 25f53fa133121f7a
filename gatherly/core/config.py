"""
Application configuration using Pydantic Settings.

Values are read from the environment (and an optional .env file).
"""

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===========================================
    # Environment
    # ===========================================
    ENVIRONMENT: Literal["local", "test"] = "local"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # ===========================================
    # Database
    # ===========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./gatherly.db"

    # ===========================================
    # Auth
    # ===========================================
    # "mock": the bearer token is taken as the user id
    AUTH_PROVIDER: Literal["mock"] = "mock"

    # Shared secret expected by the regeneration trigger endpoint
    CRON_SECRET: str = ""

    # ===========================================
    # Event regeneration
    # ===========================================
    SCHEDULER_ENABLED: bool = True
    REGENERATION_CRON_HOUR: int = Field(default=0, ge=0, le=23)
    REGENERATION_CRON_MINUTE: int = Field(default=5, ge=0, le=59)

    # ===========================================
    # RSVP
    # ===========================================
    # Compare-and-swap attempts before an RSVP gives up with a conflict
    RSVP_MAX_RETRIES: int = Field(default=5, ge=1)

    # ===========================================
    # Server
    # ===========================================
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8081"]
    )

    @property
    def is_local(self) -> bool:
        """Check if running in local environment."""
        return self.ENVIRONMENT == "local"

    @property
    def is_test(self) -> bool:
        """Check if running under the test suite."""
        return self.ENVIRONMENT == "test"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are loaded only once.
    """
    return Settings()
