"""
Configuration management for the polling machine.

``PollingOptions`` is the per-controller configuration, read-only for the
lifetime of a session. ``Settings`` loads environment-wide defaults using
Pydantic Settings for type safety and validation.
"""

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    BASE_DELAY,
    DEFAULT_INTERVALS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_POLLS,
    DEFAULT_TIMEOUT,
    default_get_retry_delay,
    default_is_complete,
    default_map_response,
)
from .exceptions import ConfigurationError


def _parse_intervals(v: Any, field_name: str) -> Any:
    """Parse an interval ladder from a comma-separated string, int or list."""
    if isinstance(v, str):
        try:
            return [int(item.strip()) for item in v.split(",") if item.strip()]
        except ValueError as e:
            raise ValueError(f"{field_name} must contain integers, got {v!r}") from e
    elif isinstance(v, int):
        return [v]
    elif isinstance(v, list | tuple):
        return list(v)
    else:
        error_msg = f"{field_name} must be a string or list, got {type(v)}"
        raise ValueError(error_msg)


def _validate_ladder(v: list[int] | tuple[int, ...]) -> tuple[int, ...]:
    if not v:
        raise ValueError("intervals must not be empty")
    for interval in v:
        if interval < 0:
            raise ValueError(f"intervals must be non-negative, got {interval}")
    return tuple(v)


class PollingOptions(BaseModel):
    """Caller-supplied configuration for one polling controller."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    map_response: Callable[..., Any] = Field(
        default=default_map_response,
        description="Maps (raw response or None, prior state) to data",
    )
    is_complete: Callable[..., bool] = Field(
        default=default_is_complete, description="Completion predicate"
    )
    max_attempts: int = Field(
        default=DEFAULT_MAX_ATTEMPTS,
        ge=0,
        description="Consecutive request failures before the session errors",
    )
    max_polls: int = Field(
        default=DEFAULT_MAX_POLLS,
        ge=0,
        description="Successful polls before the session errors",
    )
    intervals: tuple[int, ...] = Field(
        default=DEFAULT_INTERVALS, description="Interval ladder in milliseconds"
    )
    get_retry_delay: Callable[..., int] = Field(
        default=default_get_retry_delay, description="Backoff delay in milliseconds"
    )
    timeout: int = Field(
        default=DEFAULT_TIMEOUT,
        ge=0,
        description="Session timeout in milliseconds (0 disables)",
    )
    skip: bool = Field(default=False, description="Turn every step into a no-op")

    @field_validator("intervals", mode="before")
    @classmethod
    def parse_intervals(cls, v: Any) -> Any:
        """Parse intervals from comma-separated string or list."""
        return _parse_intervals(v, "intervals")

    @field_validator("intervals")
    @classmethod
    def validate_intervals(cls, v: tuple[int, ...]) -> tuple[int, ...]:
        """Validate the interval ladder."""
        return _validate_ladder(v)

    @classmethod
    def from_settings(
        cls, settings: "Settings | None" = None, **overrides: Any
    ) -> "PollingOptions":
        """
        Build options whose numeric defaults come from settings.

        Args:
            settings: Settings to read; the global instance when omitted
            **overrides: Explicit option values, taking precedence

        Returns:
            Polling options
        """
        settings = settings or get_settings()
        values: dict[str, Any] = {
            "max_attempts": settings.max_attempts,
            "max_polls": settings.max_polls,
            "intervals": settings.intervals,
            "timeout": settings.timeout,
        }
        if settings.base_delay != BASE_DELAY and "get_retry_delay" not in overrides:
            base_delay = settings.base_delay
            values["get_retry_delay"] = lambda state: (
                2**state.retry_attempts * base_delay
            )
        values.update(overrides)
        return cls(**values)


class Settings(BaseSettings):
    """Environment-wide polling defaults."""

    model_config = SettingsConfigDict(
        env_prefix="POLLING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    max_attempts: int = Field(
        default=DEFAULT_MAX_ATTEMPTS, ge=0, description="Default max attempts"
    )
    max_polls: int = Field(
        default=DEFAULT_MAX_POLLS, ge=0, description="Default max polls"
    )
    intervals: str | list[int] = Field(
        default=list(DEFAULT_INTERVALS),
        description="Default interval ladder in milliseconds (comma-separated)",
    )
    base_delay: int = Field(
        default=BASE_DELAY, ge=0, description="Retry backoff base in milliseconds"
    )
    timeout: int = Field(
        default=DEFAULT_TIMEOUT, ge=0, description="Default timeout in milliseconds"
    )

    # Logging configuration
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="console", description="Log format")

    @field_validator("intervals", mode="before")
    @classmethod
    def parse_intervals(cls, v: Any) -> list[int]:
        """Parse intervals from comma-separated string or list."""
        return list(_validate_ladder(_parse_intervals(v, "intervals")))

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        allowed_formats = {"json", "console"}
        if v.lower() not in allowed_formats:
            raise ValueError(f"Invalid log format: {v}")
        return v.lower()


# Global settings instance - initialized lazily to avoid import-time errors
_settings_instance = None


def get_settings() -> Settings:
    """Get the global settings instance, creating it if necessary."""
    global _settings_instance
    if _settings_instance is None:
        try:
            _settings_instance = Settings()
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid polling settings: {e}", context={"source": "environment"}
            ) from e
    return _settings_instance
