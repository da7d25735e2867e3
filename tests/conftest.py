"""
Shared pytest fixtures and configuration for batchspine tests.

This module provides:
- Auto-applied unit/integration markers based on test location
- Settings cache and structlog context cleanup for test isolation
- A fresh in-memory repository and synchronous launcher per test
"""

import sys
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog

# Ensure batchspine package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from batchspine.core.repository import InMemoryJobRepository
from batchspine.core.settings import get_settings
from batchspine.launch import SimpleJobLauncher


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings_and_log_context() -> Generator[None, None, None]:
    """Reset cached settings and bound log context around every test."""
    get_settings.cache_clear()
    structlog.contextvars.clear_contextvars()
    yield
    get_settings.cache_clear()
    structlog.contextvars.clear_contextvars()


# =============================================================================
# Collaborator Fixtures
# =============================================================================


@pytest.fixture
def repository() -> InMemoryJobRepository:
    return InMemoryJobRepository()


@pytest.fixture
def launcher(repository: InMemoryJobRepository) -> SimpleJobLauncher:
    """Synchronous launcher: returned executions are terminal."""
    return SimpleJobLauncher(repository)
