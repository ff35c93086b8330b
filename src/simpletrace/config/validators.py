"""Custom Pydantic validators for configuration.

This module provides validators for cross-field validation and
custom type conversions.
"""

from pathlib import Path


def validate_log_level(value: str) -> str:
    """Validate log level is one of the standard levels.

    Args:
        value: Log level string.

    Returns:
        Validated log level.

    Raises:
        ValueError: If log level is not valid.
    """
    valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if value.upper() not in valid_levels:
        raise ValueError(f"log_level must be one of {valid_levels}, got {value}")
    return value.upper()


def validate_log_format(value: str) -> str:
    """Validate log format is 'json' or 'console'.

    Args:
        value: Log format string.

    Returns:
        Validated log format.

    Raises:
        ValueError: If log format is not valid.
    """
    valid_formats = {"json", "console"}
    if value.lower() not in valid_formats:
        raise ValueError(f"log_format must be one of {valid_formats}, got {value}")
    return value.lower()


def validate_trace_format(value: str) -> str:
    """Validate the trace log field format is a known vocabulary token.

    Args:
        value: Format token (e.g. ``otel``, ``stackdriver``, ``gcp``, ``dd``).
            Empty selects the default.

    Returns:
        The format token without surrounding whitespace.

    Raises:
        ValueError: If the token is not recognized.
    """
    from simpletrace.tracecontext.vocabulary import VOCABULARY_TOKENS  # noqa: PLC0415

    token = value.strip()
    if token and token not in VOCABULARY_TOKENS:
        raise ValueError(f"trace_format must be one of {set(VOCABULARY_TOKENS)}, got {value}")
    return token


def resolve_path(value: Path | str) -> Path:
    """Resolve relative paths against the current working directory.

    Args:
        value: Path value (can be string or Path).

    Returns:
        Resolved Path object.
    """
    return Path(value).expanduser().resolve()
