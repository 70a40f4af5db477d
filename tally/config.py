"""Configuration loading for the Tally result store.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support. Variables are prefixed with ``TALLY_``.
    """

    model_config = SettingsConfigDict(
        env_prefix="TALLY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Result store configuration
    results_dir: str = Field(
        default="test-results",
        description="Root directory of the results tree",
    )
    summary_window_size: int = Field(
        default=50,
        description="Number of most recent results kept per suite summary",
    )
    lock_timeout_seconds: float = Field(
        default=30.0,
        description="Seconds to wait for a suite summary file lock",
    )

    # Record defaults
    project_name: str = Field(
        default="tally",
        description="Project name shown in the run summary",
    )
    project_version: str = Field(
        default="1.0.0",
        description="Project version shown in the run summary",
    )
    default_browser: str = Field(
        default="chromium",
        description="Browser recorded when the caller supplies none",
    )
    environment: str = Field(
        default="dev",
        description="Environment tag recorded when the caller supplies none",
    )
    base_url: str = Field(
        default="",
        description="Application base URL shown in the run summary",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    @field_validator("summary_window_size")
    @classmethod
    def validate_window_size(cls, v: int) -> int:
        """Ensure the rolling window holds at least one result."""
        if v <= 0:
            raise ValueError("summary_window_size must be positive")
        return v

    @field_validator("lock_timeout_seconds")
    @classmethod
    def validate_lock_timeout(cls, v: float) -> float:
        """Ensure lock timeout is positive."""
        if v <= 0:
            raise ValueError("lock_timeout_seconds must be positive")
        return v


def load_settings(env_file: str | None = None, **overrides: object) -> Settings:
    """Load application settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.
        overrides: Explicit values taking precedence over the environment.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file, **overrides)  # type: ignore[call-arg]
    return Settings(**overrides)  # type: ignore[arg-type]


__all__ = ["Settings", "load_settings"]
