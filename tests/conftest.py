"""Shared test fixtures."""

import os
from collections.abc import Iterator

import pytest

from simpletrace.config.settings import reset_settings


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run each test with no SIMPLETRACE_* environment and fresh settings."""
    for key in list(os.environ):
        if key.startswith("SIMPLETRACE_") or key in ("GOOGLE_CLOUD_PROJECT", "APP_ENV"):
            monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()
