"""Telemetry module for structured logging.

This module provides:
- Structured logging via structlog
- Semantic event constants
"""

from simpletrace.telemetry.events import (
    APP_CONFIG_LOAD_FAILED,
    APP_CONFIG_LOADED,
    APP_CONFIG_LOADING,
    ENGINE_CONFIG_LOAD_FAILED,
    ENGINE_CONFIG_LOADED,
    ENGINE_CONFIG_LOADING,
    ENTROPY_SOURCE_FAILED,
    ENV_FILES_LOADED,
    HTTP_REQUEST_COMPLETED,
    HTTP_REQUEST_FAILED,
    NO_ENV_FILES_FOUND,
    SERVICE_STARTING,
    SERVICE_STOPPED,
    TRACE_CONTINUED,
    TRACE_STARTED,
    TRACEPARENT_INVALID,
    UPSTREAM_REQUEST_FAILED,
    UPSTREAM_TIMEOUT,
    YAML_FILE_EMPTY,
)
from simpletrace.telemetry.logger import configure_logging, get_logger

__all__ = [
    # Core exports
    "get_logger",
    "configure_logging",
    # Event constants
    "TRACE_STARTED",
    "TRACE_CONTINUED",
    "TRACEPARENT_INVALID",
    "ENTROPY_SOURCE_FAILED",
    "HTTP_REQUEST_COMPLETED",
    "HTTP_REQUEST_FAILED",
    "UPSTREAM_REQUEST_FAILED",
    "UPSTREAM_TIMEOUT",
    "SERVICE_STARTING",
    "SERVICE_STOPPED",
    "ENGINE_CONFIG_LOADED",
    "ENGINE_CONFIG_LOADING",
    "ENGINE_CONFIG_LOAD_FAILED",
    "APP_CONFIG_LOADING",
    "APP_CONFIG_LOADED",
    "APP_CONFIG_LOAD_FAILED",
    "ENV_FILES_LOADED",
    "NO_ENV_FILES_FOUND",
    "YAML_FILE_EMPTY",
]
