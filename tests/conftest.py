"""Shared test fixtures."""

import pytest

from funding_history.logging import setup_logging


@pytest.fixture(autouse=True)
def _quiet_logging():
    """Route structlog through stdlib at WARNING so tests only see problems."""
    setup_logging(level="WARNING", log_format="json")
    yield


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    for var in ("FUNDING_LOG_LEVEL", "FUNDING_LOG_FORMAT", "FUNDING_NETWORK", "FUNDING_OUTPUT_DIR"):
        monkeypatch.delenv(var, raising=False)
