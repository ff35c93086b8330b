"""Environment variable file loader with priority-based loading."""

from enum import Enum
from pathlib import Path

import structlog
from dotenv import load_dotenv

from simpletrace.telemetry.events import ENV_FILES_LOADED, NO_ENV_FILES_FOUND

log = structlog.get_logger(__name__)


class Environment(str, Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


def get_environment() -> Environment:
    """Detect current environment from APP_ENV environment variable.

    Returns:
        Environment enum value.

    Environment variable mapping:
    - "production" or "prod" → Environment.PRODUCTION
    - "staging" or "stage" → Environment.STAGING
    - "test" → Environment.TEST
    - Default → Environment.DEVELOPMENT
    """
    import os  # noqa: PLC0415

    app_env = os.getenv("APP_ENV", "").lower()

    if app_env in ("production", "prod"):
        return Environment.PRODUCTION
    elif app_env in ("staging", "stage"):
        return Environment.STAGING
    elif app_env == "test":
        return Environment.TEST
    else:
        return Environment.DEVELOPMENT


def load_env_files(base_dir: Path | None = None) -> list[Path]:
    """Load .env files in priority order.

    Priority order (highest to lowest):
    1. `.env.{environment}.local`
    2. `.env.{environment}`
    3. `.env.local`
    4. `.env`

    Explicitly exported environment variables always win over file values.

    Args:
        base_dir: Directory holding the .env files. Defaults to the current
            working directory.

    Returns:
        The files that were loaded, highest priority first.
    """
    if base_dir is None:
        base_dir = Path.cwd()

    env_name = get_environment().value

    # Highest priority first: with override=False the first value loaded wins
    env_files = [
        base_dir / f".env.{env_name}.local",
        base_dir / f".env.{env_name}",
        base_dir / ".env.local",
        base_dir / ".env",
    ]

    loaded_files = []
    for env_file in env_files:
        if env_file.is_file():
            load_dotenv(env_file, override=False)
            loaded_files.append(env_file)

    if loaded_files:
        log.info(
            ENV_FILES_LOADED,
            environment=env_name,
            files=[f.name for f in loaded_files],
            base_dir=str(base_dir),
        )
    else:
        log.debug(NO_ENV_FILES_FOUND, environment=env_name, base_dir=str(base_dir))

    return loaded_files
