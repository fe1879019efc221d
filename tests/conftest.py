"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import random
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.engine.items import FrequencyTier, Item  # noqa: E402

FIXED_NOW = datetime(2025, 3, 10, 9, 0, 0)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, days: float = 0, hours: float = 0) -> None:
        self.now += timedelta(days=days, hours=hours)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def clock():
    """Clock frozen at FIXED_NOW."""
    return FakeClock()


@pytest.fixture
def rng():
    """Seeded RNG so shuffles are reproducible."""
    return random.Random(42)


@pytest.fixture
def make_item():
    """Factory for items with sensible content defaults."""
    counter = iter(range(1, 10_000))

    def _make(term: str | None = None, **overrides) -> Item:
        n = next(counter)
        term = term or f"word{n}"
        fields = {
            "term": term,
            "definition": f"definition of {term}",
            "part_of_speech": "adjective",
            "example_sentence": f"The {term} answer surprised everyone.",
            "item_id": f"id-{term}",
        }
        fields.update(overrides)
        return Item(**fields)

    return _make


@pytest.fixture
def sample_item():
    """A fully populated vocabulary item."""
    return Item(
        term="Laconic",
        definition="Using very few words; brief and concise in speech",
        part_of_speech="adjective",
        example_sentence="His laconic reply suggested he was not interested.",
        synonyms=("terse", "succinct", "pithy"),
        antonyms=("verbose", "loquacious"),
        mnemonic_hint="Laconia: Spartans famous for short answers",
        frequency=FrequencyTier.ESSENTIAL,
        item_id="laconic",
    )


@pytest.fixture
def sample_deck(sample_item, make_item):
    """A small mixed deck: sample item plus distractor-rich neighbours."""
    return [
        sample_item,
        make_item("Garrulous", definition="Excessively talkative", synonyms=("chatty",)),
        make_item("Ephemeral", definition="Lasting for a very short time", antonyms=("permanent",)),
        make_item("Obdurate", definition="Stubbornly refusing to change one's opinion"),
        make_item("Lucid", definition="Expressed clearly; easy to understand"),
        make_item("Pedantic", definition="Overly concerned with minor details", part_of_speech="noun"),
    ]
