"""Shared fixtures for the job application tracker tests."""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from jobtracker.logging.context import clear_log_context
from jobtracker.persistence import close_database, init_database

FIXTURES_DIR = Path(__file__).parent / "fixtures"

TRACKER_ENV_VARS = ("DATABASE_URL", "LOG_LEVEL", "TRACKER_USER", "ENVIRONMENT")


@pytest.fixture(autouse=True)
def clean_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Unset every tracker environment variable so tests start from defaults."""
    for name in TRACKER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def database():
    """Fresh in-memory database for each test."""
    init_database("sqlite:///:memory:")
    yield
    close_database()


@pytest.fixture
def fixed_now():
    """A fixed UTC instant used as the clock in service tests."""
    return datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc)


@pytest.fixture
def listing_document():
    """Recorded excerpt of the new-grad listing README."""
    return (FIXTURES_DIR / "listing_sample.md").read_text(encoding="utf-8")
