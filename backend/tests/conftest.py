"""Shared test fixtures and configuration."""
import os

import pytest

# Settings are read lazily, but the app module builds its FastAPI instance on
# import, so the required variables must exist before collection.
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from hrms.config import reset_settings  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings()
    yield
    reset_settings()

