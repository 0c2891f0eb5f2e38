"""Pytest configuration and shared fixtures.

Usage Guide:
- For record/item tests: import factories from tests.factories
- For transport tests: build headers with tests.fixtures.rate_limit_responses
- For engine tests: use the in-memory API in tests.fakes
"""

from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

import pytest

from github_backup.config import Settings, get_settings
from github_backup.logging import reset_logging

# -----------------------------------------------------------------------------
# Test Timeline Constants
#
# Define a consistent "test epoch" for deterministic date matching across tests.
# All hardcoded dates should reference these constants for consistency.
# -----------------------------------------------------------------------------

# Base dates (datetime objects)
JAN_10 = datetime(2024, 1, 10, 9, 0, 0, tzinfo=UTC)   # First issue created
JAN_12 = datetime(2024, 1, 12, 16, 0, 0, tzinfo=UTC)  # Second issue updated
JAN_15 = datetime(2024, 1, 15, 10, 0, 0, tzinfo=UTC)  # First backup run
JAN_16 = datetime(2024, 1, 16, 14, 0, 0, tzinfo=UTC)  # Issue edited after backup
JAN_20 = datetime(2024, 1, 20, 16, 0, 0, tzinfo=UTC)  # Later backup run

# ISO 8601 strings (as returned by the GitHub API)
JAN_10_ISO = "2024-01-10T09:00:00Z"
JAN_12_ISO = "2024-01-12T16:00:00Z"
JAN_15_ISO = "2024-01-15T10:00:00Z"
JAN_16_ISO = "2024-01-16T14:00:00Z"
JAN_20_ISO = "2024-01-20T16:00:00Z"


# -----------------------------------------------------------------------------
# Environment Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep settings independent of the developer's environment and .env."""
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.setitem(Settings.model_config, "env_file", None)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    reset_logging()


@pytest.fixture
def destination(tmp_path: Path) -> Path:
    """Empty backup destination directory."""
    path = tmp_path / "backup"
    path.mkdir()
    return path
