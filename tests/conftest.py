import pytest
from pytest_asyncio import is_async_test


def pytest_collection_modifyitems(items: list[pytest.Item]):
    for test in items:
        if is_async_test(test):
            # Mark async tests with session scope
            test.add_marker(pytest.mark.asyncio(loop_scope="session"), append=False)


# Mute logging side effects
from post_approver.logging_setup import mute_logging_for_tests

mute_logging_for_tests()

# Mute mp for tests
from post_approver.common.mp import mute_mp_for_tests

mute_mp_for_tests()

from typing import Dict, List
from unittest.mock import AsyncMock, MagicMock

from post_approver.common import utils
from post_approver.moderation.session import ModerationSession
from post_approver.moderation.skip_cache import SkipCache
from post_approver.store.airtable_store import CandidateStoreError
from post_approver.types import Candidate

OPERATOR_ID = 133526395


class FakeClock:
    """Manually advanced replacement for time.monotonic"""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeStore:
    """In-memory candidate store recording every call"""

    def __init__(self, candidates: List[Candidate] | None = None):
        self.candidates = list(candidates or [])
        self.fetch_calls = 0
        self.updates: List[tuple[str, Dict[str, bool]]] = []
        self.fail_fetch = False
        self.fail_update = False

    async def fetch_pending(self) -> List[Candidate]:
        self.fetch_calls += 1
        if self.fail_fetch:
            raise CandidateStoreError("Failed to query candidates: 503 Service Unavailable")
        return [
            c
            for c in self.candidates
            if not (c.approved or c.rejected or c.under_investigation)
        ]

    async def update_flags(self, candidate: Candidate, values: Dict[str, bool]) -> None:
        if self.fail_update:
            raise CandidateStoreError(f"Failed to update {candidate.identifier}: 422")
        self.updates.append((candidate.record_id, values))
        for stored in self.candidates:
            if stored.record_id == candidate.record_id:
                stored.apply(values)

    @property
    def call_count(self) -> int:
        return self.fetch_calls + len(self.updates)


def make_candidate(n: int, **kwargs) -> Candidate:
    return Candidate(
        record_id=f"rec{n:03d}", identifier=f"guid-{n}", title=f"Post {n}", **kwargs
    )


def make_message(text: str | None, user_id: int = OPERATOR_ID) -> MagicMock:
    message = MagicMock()
    message.text = text
    message.chat.id = user_id
    message.chat.type = "private"
    message.from_user.id = user_id
    message.from_user.username = "operator"
    message.answer = AsyncMock()
    message.reply = AsyncMock()
    return message


@pytest.fixture(autouse=True)
def default_texts(monkeypatch):
    """Use built-in texts regardless of a local config.yaml"""
    monkeypatch.setattr(utils, "load_config", lambda: {})


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def skip_cache(clock):
    return SkipCache(timer=clock)


@pytest.fixture
def store():
    return FakeStore([make_candidate(1), make_candidate(2), make_candidate(3)])


@pytest.fixture
def moderation(store, skip_cache):
    return ModerationSession(store, skip_cache)


@pytest.fixture
def operator_id():
    return OPERATOR_ID


@pytest.fixture(name="make_message")
def make_message_fixture():
    return make_message


@pytest.fixture(name="make_candidate")
def make_candidate_fixture():
    return make_candidate
