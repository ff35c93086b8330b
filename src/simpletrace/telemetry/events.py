"""Semantic event constants for structured logging.

All log events should use these constants rather than magic strings to ensure
consistency and enable reliable querying and analysis.
"""

# Trace context engine events
TRACE_STARTED = "trace_started"
TRACE_CONTINUED = "trace_continued"
TRACEPARENT_INVALID = "traceparent_invalid"
ENTROPY_SOURCE_FAILED = "entropy_source_failed"

# HTTP events
HTTP_REQUEST_COMPLETED = "http_request_completed"
HTTP_REQUEST_FAILED = "http_request_failed"
UPSTREAM_REQUEST_FAILED = "upstream_request_failed"
UPSTREAM_TIMEOUT = "upstream_timeout"

# Service lifecycle events
SERVICE_STARTING = "service_starting"
SERVICE_STOPPED = "service_stopped"

# Configuration events
ENGINE_CONFIG_LOADING = "engine_config_loading"
ENGINE_CONFIG_LOADED = "engine_config_loaded"
ENGINE_CONFIG_LOAD_FAILED = "engine_config_load_failed"
APP_CONFIG_LOADING = "app_config_loading"
APP_CONFIG_LOADED = "app_config_loaded"
APP_CONFIG_LOAD_FAILED = "app_config_load_failed"
ENV_FILES_LOADED = "env_files_loaded"
NO_ENV_FILES_FOUND = "no_env_files_found"
YAML_FILE_EMPTY = "yaml_file_empty"
