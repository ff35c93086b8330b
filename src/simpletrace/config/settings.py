"""Application configuration settings.

This module provides the AppConfig class and settings singleton.
"""

from pathlib import Path

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from simpletrace.config.env_loader import Environment, get_environment, load_env_files
from simpletrace.config.validators import (
    resolve_path,
    validate_log_format,
    validate_log_level,
    validate_trace_format,
)
from simpletrace.telemetry.events import (
    APP_CONFIG_LOAD_FAILED,
    APP_CONFIG_LOADED,
    APP_CONFIG_LOADING,
)

log = structlog.get_logger(__name__)


class AppConfig(BaseSettings):
    """Unified application configuration.

    Loads configuration from environment variables, .env files, and defaults.
    Validates all values using Pydantic. The trace engine itself is configured
    either from the ``trace_*`` fields below or, when ``trace_config_path`` is
    set, from the ``simpletrace`` block of that YAML file.
    """

    model_config = SettingsConfigDict(
        env_prefix="SIMPLETRACE_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    environment: Environment = Field(
        default_factory=get_environment, description="Current environment"
    )

    # Trace context engine
    trace_format: str = Field(
        default="otel",
        description="Log field vocabulary (otel, stackdriver, gcp, tempo, ecs, datadog, dd)",
    )
    project_id: str = Field(
        default="",
        description="Google Cloud project ID; supports {env.NAME} placeholders",
    )
    strict_traceparent: bool = Field(
        default=False, description="Reject traceparent headers with malformed fields"
    )
    trace_config_path: Path | None = Field(
        default=None, description="YAML file with a simpletrace block (overrides trace_* fields)"
    )

    # Upstream
    upstream_url: str = Field(
        default="http://localhost:8080", description="Base URL requests are forwarded to"
    )
    upstream_timeout_seconds: float = Field(
        default=30.0, gt=0, description="Upstream request timeout"
    )

    # Service
    service_host: str = Field(default="0.0.0.0", description="Service host address")
    service_port: int = Field(default=8000, ge=1, le=65535, description="Service port number")

    # Telemetry
    log_dir: Path | None = Field(default=None, description="JSON-lines log directory")
    log_level: str = Field(
        default="INFO",
        alias="APP_LOG_LEVEL",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_format: str = Field(
        default="json", alias="APP_LOG_FORMAT", description="Log format (json or console)"
    )

    @field_validator("trace_format")
    @classmethod
    def validate_trace_format(cls, v: str) -> str:
        """Validate trace field format."""
        return validate_trace_format(v) or "otel"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        return validate_log_level(v)

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        return validate_log_format(v)

    @field_validator("log_dir", "trace_config_path", mode="before")
    @classmethod
    def resolve_paths(cls, v: Path | str | None) -> Path | None:
        """Resolve relative paths to absolute."""
        if v is None or v == "":
            return None
        return resolve_path(v)


_settings: AppConfig | None = None


def load_app_config() -> AppConfig:
    """Load and validate application configuration.

    This function:
    1. Loads .env files in priority order (via env_loader)
    2. Creates AppConfig instance (reads from environment variables)
    3. Validates all values using Pydantic

    Returns:
        Validated AppConfig instance.

    Raises:
        ValidationError: If configuration validation fails.
    """
    log.info(APP_CONFIG_LOADING, environment=get_environment().value)

    load_env_files()

    try:
        config = AppConfig()
        log.info(
            APP_CONFIG_LOADED,
            environment=config.environment.value,
            trace_format=config.trace_format,
            upstream_url=config.upstream_url,
            log_level=config.log_level,
        )
        return config
    except Exception as e:
        log.error(APP_CONFIG_LOAD_FAILED, error=str(e), error_type=type(e).__name__)
        raise


def get_settings() -> AppConfig:
    """Get the application settings singleton.

    Returns:
        AppConfig instance (singleton pattern).
    """
    global _settings
    if _settings is None:
        _settings = load_app_config()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() reloads them."""
    global _settings
    _settings = None
