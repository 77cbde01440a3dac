"""Configuration management for eventdesk.

This module loads configuration from environment variables with sensible defaults.
It uses dotenv to load from .env files and provides a centralized config object.
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = {"memory", "google"}


class AppConfig(BaseModel):
    """Application configuration loaded from environment variables."""

    # Provider Configuration
    provider: str = Field(description="Calendar provider backing the app")
    timezone: Optional[str] = Field(
        None, description="IANA zone used for day buckets (system local if unset)"
    )

    # Storage Configuration
    secrets_database_url: str = Field(
        description="Database URL for calendar grant storage",
    )

    # Google API Configuration
    google_credentials_file: str = Field(
        description="Path to Google API client secrets file"
    )
    google_calendar_id: str = Field(
        description="Calendar that receives new events"
    )

    # Concurrency Configuration
    max_workers: int = Field(description="Threads available for provider calls")

    # Logging Configuration
    log_level: str = Field(description="Logging level")

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        """Validate that the provider is one we ship."""
        provider = v.lower()
        if provider not in SUPPORTED_PROVIDERS:
            raise ValueError(
                f"Invalid provider: {v}. Must be one of {SUPPORTED_PROVIDERS}"
            )
        return provider

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level = v.upper()
        if level not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return level

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        """Validate max workers is positive."""
        if v <= 0:
            raise ValueError("max_workers must be positive")
        return v


def detect_environment() -> str:
    """Detect the current runtime environment.

    Returns:
        'ci': Running in CI/testing environment
        'user': Running in user/development environment
    """
    if os.getenv("CI") or os.getenv("PYTEST_CURRENT_TEST"):
        return "ci"
    return "user"


def get_secrets_database_url(environment: str) -> str:
    """Get the grant storage URL for the environment.

    An explicit SECRETS_DATABASE_URL always wins.
    """
    explicit = os.getenv("SECRETS_DATABASE_URL")
    if explicit:
        logger.info(f"Using explicit secrets database URL for {environment}")
        return explicit

    if environment == "ci":
        logger.info("Using in-memory secrets database for ci environment")
        return "sqlite:///:memory:"
    return "sqlite:///eventdesk_secrets.db"


def load_default_config() -> AppConfig:
    """Load configuration from environment variables with defaults."""
    load_dotenv()

    environment = detect_environment()

    return AppConfig(
        provider=os.getenv("EVENTDESK_PROVIDER", "memory"),
        timezone=os.getenv("EVENTDESK_TIMEZONE") or None,
        secrets_database_url=get_secrets_database_url(environment),
        google_credentials_file=os.getenv(
            "GOOGLE_CREDENTIALS_FILE", "credentials.json"
        ),
        google_calendar_id=os.getenv("GOOGLE_CALENDAR_ID", "primary"),
        max_workers=int(os.getenv("EVENTDESK_MAX_WORKERS", "4")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )


# Singleton config instance
_config: Optional[AppConfig] = None


def get_current_config() -> AppConfig:
    """Get the current application configuration (singleton)."""
    global _config
    if _config is None:
        _config = load_default_config()
    return _config


def reset_config() -> None:
    """Forget the cached configuration so the next call reloads it."""
    global _config
    _config = None
