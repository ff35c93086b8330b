"""Shared YAML loading utilities for configuration files."""

from pathlib import Path
from typing import Any

import structlog
import yaml

from simpletrace.telemetry.events import YAML_FILE_EMPTY

log = structlog.get_logger(__name__)


class ConfigLoadError(Exception):
    """Base exception for configuration loading errors."""

    pass


def load_yaml_file(
    file_path: Path, error_class: type[Exception] = ConfigLoadError
) -> dict[str, Any]:
    """Load and parse a YAML file.

    Args:
        file_path: Path to the YAML file.
        error_class: Exception class to raise on errors. Defaults to ConfigLoadError.

    Returns:
        Parsed YAML content as a dictionary. Returns empty dict if file is empty or None.

    Raises:
        error_class: If file cannot be read or parsed, or its top level is not
            a mapping.

    Example:
        >>> from pathlib import Path
        >>> data = load_yaml_file(Path("simpletrace.yaml"))
        >>> print(data.get("simpletrace", {}))
    """
    try:
        with file_path.open("r", encoding="utf-8") as f:
            content: Any = yaml.safe_load(f)
    except FileNotFoundError:
        raise error_class(f"Configuration file not found: {file_path}") from None
    except yaml.YAMLError as e:
        raise error_class(f"Failed to parse YAML file {file_path}: {e}") from None
    except OSError as e:
        raise error_class(f"Unexpected error reading {file_path}: {e}") from None

    if content is None:
        log.debug(YAML_FILE_EMPTY, file_path=str(file_path))
        return {}
    if not isinstance(content, dict):
        raise error_class(
            f"Configuration file {file_path} must contain a mapping, got {type(content).__name__}"
        )
    return content
