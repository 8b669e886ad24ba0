"""
Pytest Configuration and Shared Fixtures

Provides common test fixtures and configuration for the entire test suite.
"""

import tempfile
from pathlib import Path

import pytest

from tests.fixtures.synthetic_data import (
    build_registry_store,
    export_row,
    sample_clients,
    sample_payees,
    sample_projects,
)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_path:
        yield Path(temp_path)


@pytest.fixture
def payees():
    """Canonical payee registry."""
    return sample_payees()


@pytest.fixture
def clients():
    """Canonical client registry."""
    return sample_clients()


@pytest.fixture
def projects():
    """Canonical project registry including the overhead projects."""
    return sample_projects()


@pytest.fixture
def store():
    """In-memory record store seeded with the sample registries."""
    return build_registry_store()


@pytest.fixture
def abc_rows():
    """Two export rows naming the same vendor two ways on the same day."""
    return [
        export_row(date="2025-01-10", amount="1,200.00", name="ABC Construction", project="125-001"),
        export_row(date="2025-01-10", amount="1,200.00", name="ABC Construction LLC", project="125-001"),
    ]


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Set up test environment variables."""
    # Ensure tests don't use production data
    monkeypatch.setenv("JOBLEDGER_ENV", "test")
    monkeypatch.setenv("JOBLEDGER_DATA_DIR", "/tmp/test_jobledger_data")
    # Each test builds its own global config from the variables above
    monkeypatch.setattr("jobledger.core.config._config", None)


# Test markers for categorizing tests
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for complete workflows")
    config.addinivalue_line("markers", "e2e: End-to-end tests driving the CLI")
    config.addinivalue_line("markers", "currency: Tests for currency handling and precision")
    config.addinivalue_line("markers", "matching: Tests for similarity scoring and entity resolution")
    config.addinivalue_line("markers", "classification: Tests for category classification")
    config.addinivalue_line("markers", "allocation: Tests for line-item allocation suggestions")
    config.addinivalue_line("markers", "dedup: Tests for duplicate detection and reconciliation")
    config.addinivalue_line("markers", "slow: Tests that take significant time to run")
