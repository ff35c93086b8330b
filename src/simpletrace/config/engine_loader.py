"""Load and validate trace context engine configuration.

The engine is configured by a ``simpletrace`` block, either read from a YAML
file::

    simpletrace:
      format: stackdriver
      project_id: "{env.GCP_PROJECT}"
      strict: false

or assembled from the ``SIMPLETRACE_*`` application settings. Errors in this
block are reported when the configuration is loaded, never per request.
"""

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from simpletrace.config.loader import ConfigLoadError, load_yaml_file
from simpletrace.config.settings import AppConfig, get_settings
from simpletrace.telemetry.events import (
    ENGINE_CONFIG_LOAD_FAILED,
    ENGINE_CONFIG_LOADED,
    ENGINE_CONFIG_LOADING,
)
from simpletrace.tracecontext.models import EngineConfig
from simpletrace.tracecontext.vocabulary import OutputVocabulary

log = structlog.get_logger(__name__)

ENGINE_CONFIG_SECTION = "simpletrace"
GOOGLE_CLOUD_PROJECT_ENV = "GOOGLE_CLOUD_PROJECT"

_PLACEHOLDER_RE = re.compile(r"\{([^{}]*)\}")


class EngineConfigError(ConfigLoadError):
    """Raised when the trace engine configuration is invalid."""

    pass


def replace_placeholders(value: str, environ: Mapping[str, str] | None = None) -> str:
    """Substitute ``{env.NAME}`` placeholders.

    Environment placeholders are replaced by the variable's value, or the
    empty string if it is unset. Any other placeholder is replaced by the
    empty string.

    Args:
        value: String possibly containing placeholders.
        environ: Environment to read from. Defaults to ``os.environ``.

    Returns:
        The string with every placeholder replaced.
    """
    env = os.environ if environ is None else environ

    def _replace(match: re.Match[str]) -> str:
        key = match.group(1)
        if key.startswith("env."):
            return env.get(key[len("env.") :], "")
        return ""

    return _PLACEHOLDER_RE.sub(_replace, value)


def _format_validation_error(error: ValidationError) -> str:
    messages = []
    for item in error.errors():
        field_path = " -> ".join(str(loc) for loc in item["loc"]) or ENGINE_CONFIG_SECTION
        if item["type"] == "extra_forbidden":
            messages.append(f"unknown option: {field_path}")
        else:
            messages.append(f"{field_path}: {item['msg']}")
    return "; ".join(messages)


def provision_engine_config(
    raw: Mapping[str, Any], environ: Mapping[str, str] | None = None
) -> EngineConfig:
    """Validate a ``simpletrace`` block and resolve its project ID.

    Args:
        raw: Options of the block (``format``, ``project_id``, ``strict``).
        environ: Environment used for placeholders and the
            ``GOOGLE_CLOUD_PROJECT`` fallback. Defaults to ``os.environ``.

    Returns:
        Immutable engine configuration.

    Raises:
        EngineConfigError: On unknown options, unknown formats or values of
            the wrong type.
    """
    env = os.environ if environ is None else environ

    try:
        config = EngineConfig.model_validate(dict(raw))
    except ValidationError as e:
        error_summary = _format_validation_error(e)
        log.error(ENGINE_CONFIG_LOAD_FAILED, error=error_summary, error_type=type(e).__name__)
        raise EngineConfigError(f"Invalid {ENGINE_CONFIG_SECTION} configuration: {error_summary}") from None

    project_id = replace_placeholders(config.project_id, env).strip()
    if not project_id and config.vocabulary is OutputVocabulary.STACKDRIVER:
        project_id = env.get(GOOGLE_CLOUD_PROJECT_ENV, "").strip()

    config = config.model_copy(update={"project_id": project_id})
    log.info(
        ENGINE_CONFIG_LOADED,
        format=config.vocabulary.value,
        project_id=config.project_id or None,
        strict=config.strict,
    )
    return config


def _section_from_file(config_path: Path) -> dict[str, Any]:
    content = load_yaml_file(config_path, error_class=EngineConfigError)

    unknown = sorted(str(key) for key in content if key != ENGINE_CONFIG_SECTION)
    if unknown:
        raise EngineConfigError(
            f"Unknown configuration section(s) in {config_path}: {', '.join(unknown)}"
        )

    section = content.get(ENGINE_CONFIG_SECTION)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise EngineConfigError(
            f"'{ENGINE_CONFIG_SECTION}' in {config_path} must be a mapping, "
            f"got {type(section).__name__}"
        )
    return section


def load_engine_config(
    config_path: Path | str | None = None,
    settings: AppConfig | None = None,
    environ: Mapping[str, str] | None = None,
) -> EngineConfig:
    """Load the engine configuration.

    Args:
        config_path: YAML file holding a ``simpletrace`` block. If None, uses
            ``settings.trace_config_path`` or, when that is unset too, the
            ``trace_*`` application settings.
        settings: Application settings. Defaults to the settings singleton.
        environ: Environment for placeholder substitution.

    Returns:
        Validated, immutable EngineConfig.

    Raises:
        EngineConfigError: If the configuration cannot be loaded or is invalid.
    """
    if config_path is None:
        settings = settings or get_settings()
        config_path = settings.trace_config_path
        if config_path is None:
            return provision_engine_config(
                {
                    "format": settings.trace_format,
                    "project_id": settings.project_id,
                    "strict": settings.strict_traceparent,
                },
                environ,
            )

    config_path = Path(config_path)
    log.info(ENGINE_CONFIG_LOADING, config_path=str(config_path))
    return provision_engine_config(_section_from_file(config_path), environ)
