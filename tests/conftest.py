"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.core.catalog import ContentItem, Difficulty  # noqa: E402
from src.core.events import EventBus  # noqa: E402
from src.core.storage import MemoryStorage  # noqa: E402
from src.core.telemetry import ErrorReporter  # noqa: E402
from src.progress.store import ProfileStore  # noqa: E402
from src.recommendation.engine import RecommendationEngine  # noqa: E402
from src.rewards.evaluator import RewardEvaluator  # noqa: E402

START = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests across components")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class FakeClock:
    """Settable UTC clock for deterministic timestamps."""

    def __init__(self, now: datetime = START):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


class EventRecorder:
    """Subscribes to every event it is told about and keeps the payloads."""

    def __init__(self, bus: EventBus):
        self.bus = bus
        self.received: list[tuple[str, dict]] = []

    def listen(self, *events) -> "EventRecorder":
        for event in events:
            name = event.value if hasattr(event, "value") else event
            self.bus.on(event, lambda payload, name=name: self.received.append((name, payload)))
        return self

    def names(self) -> list[str]:
        return [name for name, _ in self.received]

    def payloads(self, event) -> list[dict]:
        name = event.value if hasattr(event, "value") else event
        return [payload for n, payload in self.received if n == name]


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def reporter():
    return ErrorReporter()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def recorder(event_bus):
    return EventRecorder(event_bus)


@pytest.fixture
def store(memory_storage, event_bus, reporter, clock):
    """A ProfileStore over empty in-memory storage."""
    return ProfileStore(memory_storage, events=event_bus, reporter=reporter, clock=clock)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def engine(store, rng):
    return RecommendationEngine(store, rng=rng)


@pytest.fixture
def evaluator(store):
    return RewardEvaluator(store)


@pytest.fixture
def letter_pool():
    """Twelve alphabet items: six beginner, four intermediate, two advanced."""
    letters = ["ಅ", "ಆ", "ಇ", "ಈ", "ಉ", "ಊ", "ಕ", "ಖ", "ಗ", "ಘ", "ಙ", "ಚ"]
    tiers = [Difficulty.BEGINNER] * 6 + [Difficulty.INTERMEDIATE] * 4 + [Difficulty.ADVANCED] * 2
    return [
        ContentItem(item_id=letter, difficulty=tier, payload={"letter": letter})
        for letter, tier in zip(letters, tiers)
    ]
