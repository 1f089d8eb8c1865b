"""
Pytest fixtures for token bag tests.

Provides deterministic random sources and fresh managers for isolated testing.
"""

import pytest
from pathlib import Path

# Add repo root to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from tokenbag.state import EventBus, RuleConfig
from tokenbag.state.manager import BagSessionManager
from tokenbag.systems import ModifierTracker, TestSession
from tokenbag.tools.rng import ScriptedRandomSource, SeededRandomSource
from tokenbag.interface.command_registry import reset_registry


@pytest.fixture
def seeded():
    """Reproducible random source."""
    return SeededRandomSource(seed=1234)


@pytest.fixture
def scripted():
    """Factory for random sources that replay fixed values."""
    def make(*values: int) -> ScriptedRandomSource:
        return ScriptedRandomSource(values)
    return make


@pytest.fixture
def default_config():
    """3 traits, normale (3 blacks), base limit 4."""
    return RuleConfig()


@pytest.fixture
def modifiers():
    return ModifierTracker()


@pytest.fixture
def session(seeded):
    """Unstarted test session on a seeded source."""
    return TestSession(seeded)


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def manager(seeded, bus):
    """Session manager with seeded randomness and its own bus."""
    return BagSessionManager(rng=seeded, event_bus=bus)


@pytest.fixture
def registry():
    """Fresh global command registry."""
    reset_registry()
    yield
    reset_registry()
