"""Configuration management for simpletrace.

This module integrates environment variables, .env files, YAML files and
defaults into validated configuration objects.
"""

from simpletrace.config.engine_loader import (
    EngineConfigError,
    load_engine_config,
    provision_engine_config,
    replace_placeholders,
)
from simpletrace.config.env_loader import Environment, get_environment
from simpletrace.config.loader import ConfigLoadError
from simpletrace.config.settings import AppConfig, get_settings, load_app_config, reset_settings

__all__ = [
    # App-level settings
    "AppConfig",
    "get_settings",
    "load_app_config",
    "reset_settings",
    "Environment",
    "get_environment",
    # Trace engine configuration
    "load_engine_config",
    "provision_engine_config",
    "replace_placeholders",
    # Exception classes
    "ConfigLoadError",
    "EngineConfigError",
]
