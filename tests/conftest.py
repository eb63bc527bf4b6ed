"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import random
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from kravtrainer.core.models import (  # noqa: E402
    PriorityLevel,
    SessionConfig,
    Technique,
    TechniqueCategory,
)
from kravtrainer.delivery.notifier import RecordingNotifier  # noqa: E402
from kravtrainer.delivery.store import MemoryStore  # noqa: E402
from kravtrainer.session.timers import ManualTimerService  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "simulation: Whole-session simulations on a virtual clock")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "simulation" in str(item.fspath):
            item.add_marker(pytest.mark.simulation)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


# =============================================================================
# Fakes
# =============================================================================


class FakeAudioPlayer:
    """Audio player with scripted results: True, False or an exception instance."""

    def __init__(self, results=None, default=True):
        self.results = list(results or [])
        self.default = default
        self.played = []
        self.volume = 80

    async def play(self, file_id):
        self.played.append(file_id)
        result = self.results.pop(0) if self.results else self.default
        if isinstance(result, BaseException):
            raise result
        return result

    def set_volume(self, volume):
        self.volume = volume


class FakeClock:
    """Epoch-millisecond clock moved by hand."""

    def __init__(self, now_ms=1_700_000_000_000):
        self.now_ms = now_ms

    def __call__(self):
        return self.now_ms

    def advance(self, seconds):
        self.now_ms += int(seconds * 1000)


class FailingStore:
    """Key/value store whose every operation raises."""

    def save(self, key, value):
        raise OSError("disk full")

    def load(self, key):
        raise OSError("disk gone")

    def clear(self, key):
        raise OSError("read-only")


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def sample_techniques():
    """A small mixed pool: two punches and two kicks."""
    return [
        Technique("Left Straight Punch", "left-punch.wav", TechniqueCategory.PUNCHES),
        Technique("Right Straight Punch", "right-punch.wav", TechniqueCategory.PUNCHES),
        Technique("Left Low Kick", "left-low-kick.wav", TechniqueCategory.KICKS),
        Technique(
            "Right Low Kick",
            "right-low-kick.wav",
            TechniqueCategory.KICKS,
            priority=PriorityLevel.HIGH,
        ),
    ]


@pytest.fixture
def session_config(sample_techniques):
    """One-minute session, one announcement per second."""
    return SessionConfig(duration=1, delay=1, volume=80, techniques=sample_techniques)


@pytest.fixture
def timers():
    return ManualTimerService()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def audio():
    return FakeAudioPlayer()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def audio_factory():
    """Build a FakeAudioPlayer with scripted results."""
    return FakeAudioPlayer


@pytest.fixture
def failing_store():
    return FailingStore()
