"""Configuration management for the GolfMatch core."""

from typing import Any

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application Configuration
    APP_NAME: str = "GolfMatch"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"
    DEBUG: bool = Field(default=None, validate_default=True)

    # Storage Configuration
    REDIS_URL: str | None = None
    DATABASE_URL: str = "sqlite://"

    # Sentry Configuration
    SENTRY_DSN: str | None = None

    # Subscription Limits
    FREE_DAILY_LIKES: int = 15
    FREE_MAX_RADIUS: int = 25
    PREMIUM_MAX_RADIUS: int = 100

    # Matching Algorithm Configuration
    MATCH_SCORE_DISTANCE_CUTOFF: float = 25.0

    @field_validator("DEBUG", mode="before")
    @classmethod
    def set_debug(cls, v: Any, info: ValidationInfo) -> bool:
        """Enable debug mode if ENVIRONMENT is development."""
        if isinstance(v, bool):
            return v
        if isinstance(v, str) and v.strip():
            return v.strip().lower() in {"1", "true", "yes", "on"}
        return bool(info.data.get("ENVIRONMENT", "").lower() == "development")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


# Create a global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Return the settings instance."""
    return settings
