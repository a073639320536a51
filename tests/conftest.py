"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import UTC, datetime
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from adaptive_scheduler.clock import FrozenClock  # noqa: E402
from adaptive_scheduler.exam import ExamEngine  # noqa: E402
from adaptive_scheduler.question_bank import InMemoryQuestionBank, Item  # noqa: E402
from adaptive_scheduler.review import ReviewScheduler  # noqa: E402
from adaptive_scheduler.store import InMemoryStore  # noqa: E402

START = datetime(2025, 1, 30, 9, 0, tzinfo=UTC)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (SQL store on SQLite)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def clock():
    """Frozen clock starting at a fixed morning."""
    return FrozenClock(START)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def reviews(store, clock):
    """ReviewScheduler over an in-memory store."""
    return ReviewScheduler(store, clock=clock)


@pytest.fixture
def question_bank():
    """Five items per difficulty tier."""
    return InMemoryQuestionBank(
        {
            difficulty: [
                Item(id=f"d{difficulty}-q{n}", payload={"text": f"Question {n} at level {difficulty}"})
                for n in range(1, 6)
            ]
            for difficulty in (1, 2, 3)
        }
    )


@pytest.fixture
def exams(store, clock, question_bank):
    """ExamEngine over an in-memory store with deterministic session ids."""
    counter = iter(range(1, 10_000))
    return ExamEngine(
        store,
        clock=clock,
        question_bank=question_bank,
        id_factory=lambda: f"session-{next(counter)}",
    )
