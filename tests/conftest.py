"""Shared test fixtures: controllable clock, flag stores and host doubles."""

from __future__ import annotations

import pytest

from mailscrub.bulk import Tab
from mailscrub.flags import MemoryFlagStore
from mailscrub.gate import RequestGate
from mailscrub.sessions import SessionTracker


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingTabHost:
    """Tab host that records updates and fails for ids in *fail_ids*."""

    def __init__(self, tabs: list[Tab], fail_ids: set[int] | None = None) -> None:
        self.tabs = tabs
        self.fail_ids = fail_ids or set()
        self.updates: list[tuple[int, str]] = []

    async def query(self, window_id=None) -> list[Tab]:
        return list(self.tabs)

    async def update(self, tab_id: int, url: str) -> None:
        if tab_id in self.fail_ids:
            raise RuntimeError(f"tab {tab_id} is gone")
        self.updates.append((tab_id, url))


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    async def notify(self, title: str, message: str) -> None:
        self.messages.append((title, message))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tracker(clock) -> SessionTracker:
    return SessionTracker(ttl=15.0, clock=clock)


@pytest.fixture
def flag_store() -> MemoryFlagStore:
    return MemoryFlagStore(enabled=True)


@pytest.fixture
def gate(tracker, flag_store) -> RequestGate:
    return RequestGate(tracker, flag_store)
