"""Shared fixtures for jobmatch tests."""

import pytest

from jobmatch.logging.context import clear_log_context
from jobmatch.persistence.database import close_database, init_database
from tests.helpers import StepClock


@pytest.fixture(autouse=True)
def reset_log_context():
    """Keep context fields from leaking between tests."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def database(tmp_path):
    """File-backed SQLite database; safe to use from worker threads."""
    init_database(f"sqlite:///{tmp_path / 'jobmatch.db'}")
    yield
    close_database()


@pytest.fixture
def memory_database():
    """In-memory SQLite database for single-threaded tests."""
    init_database("sqlite:///:memory:")
    yield
    close_database()


@pytest.fixture
def step_clock():
    """Clock advancing one second per call, starting at FIXED_NOW."""
    return StepClock()
