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

from feynman.accounts.credential_store import CredentialStore
from feynman.core.models import Difficulty, Message, Problem, Sender
from feynman.navigation.app import TutorApp
from feynman.storage.kv_store import MemoryKeyValueStore
from feynman.storage.repository import TutorRepository
from feynman.study.mistake_store import MistakeArchiveStore
from feynman.study.session_store import SessionContinuityStore


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (full navigation flows)")
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


# =============================================================================
# Helpers
# =============================================================================


class FakeClock:
    """Deterministic millisecond clock; every call advances by one second."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1000):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        self.now += self.step
        return self.now


class FakeProvider:
    """In-memory TutorProvider that records every call."""

    def __init__(self):
        self.generated_topics: list[str] = []
        self.evaluations: list[tuple[Problem, list[Message], object, str | None]] = []
        self.summaries: list[list[Problem]] = []
        self.reply = "What happens to the numerator as x approaches 0?"
        self.raise_on_generate: Exception | None = None
        self.before_reply = None  # optional callable run mid-evaluation
        self._counter = 0

    async def generate_problem(self, topic: str) -> Problem:
        if self.raise_on_generate is not None:
            raise self.raise_on_generate
        self._counter += 1
        self.generated_topics.append(topic)
        return Problem(
            id=f"p{self._counter}",
            topic=topic,
            content=f"Problem {self._counter} about {topic}",
            source="2019 Putnam",
            feynman_explanation="Think of it as a slope.",
            standard_solution="Apply L'Hopital's rule.",
            difficulty=Difficulty.MEDIUM,
        )

    async def evaluate(self, problem, history, attachment=None, text=None) -> str:
        self.evaluations.append((problem, list(history), attachment, text))
        if self.before_reply is not None:
            self.before_reply()
        return self.reply

    async def summarize(self, mistakes) -> str:
        self.summaries.append(list(mistakes))
        return f"Report over {len(mistakes)} problem(s)"


def make_problem(problem_id: str = "p1", topic: str = "Limits & Continuity", **extra) -> Problem:
    """Build a problem with sensible defaults."""
    fields = {
        "id": problem_id,
        "topic": topic,
        "content": f"Evaluate the limit for {problem_id}",
    }
    fields.update(extra)
    return Problem(**fields)


def make_message(message_id: str, text: str, sender: Sender = Sender.USER) -> Message:
    return Message(id=message_id, sender=sender, text=text)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def kv():
    return MemoryKeyValueStore()


@pytest.fixture
def repository(kv):
    return TutorRepository(kv)


@pytest.fixture
def credentials(repository, clock):
    return CredentialStore(repository, clock=clock)


@pytest.fixture
def mistake_store(repository):
    return MistakeArchiveStore(repository)


@pytest.fixture
def session_store(repository):
    return SessionContinuityStore(repository)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def app(credentials, mistake_store, session_store, provider, clock):
    """TutorApp over in-memory stores, already bootstrapped."""
    tutor = TutorApp(
        credentials=credentials,
        mistakes=mistake_store,
        sessions=session_store,
        provider=provider,
        rng=random.Random(7),
        clock=clock,
    )
    tutor.start()
    return tutor


@pytest.fixture(name="make_problem")
def make_problem_fixture():
    return make_problem


@pytest.fixture(name="make_message")
def make_message_fixture():
    return make_message
