# ==============================================================================
# Shared Test Fixtures
# ==============================================================================
"""
Pytest fixtures shared across all test modules.

Provides:
- A controllable clock shared by the store, registry and router
- An in-memory DashboardSocket that records every frame sent to it
- Store, registry, router and dispatcher instances wired together
- A helper for building validated events
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from livestats.base import DashboardSocket
from livestats.core.event_store import EventStore
from livestats.core.milestones import MilestoneDetector
from livestats.core.models import EventType, VisitorEvent
from livestats.realtime import BroadcastRouter, ConnectionRegistry, MessageDispatcher

# Noon UTC keeps every test timestamp on one calendar day in any local timezone
START = datetime(2024, 6, 12, 12, 0, 30, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class FakeSocket(DashboardSocket):
    """In-memory socket; set ``fail`` to make every send raise."""

    def __init__(self, fail: bool = False):
        self.open = True
        self.fail = fail
        self.sent: list[str] = []
        self.close_code: int | None = None

    @property
    def is_open(self) -> bool:
        return self.open

    async def send_text(self, text: str) -> None:
        if self.fail:
            raise ConnectionResetError("peer went away")
        self.sent.append(text)

    async def close(self, code: int = 1000) -> None:
        self.open = False
        self.close_code = code

    @property
    def messages(self) -> list[dict]:
        return [json.loads(text) for text in self.sent]

    def types(self) -> list[str]:
        return [m["type"] for m in self.messages]

    def last(self, message_type: str) -> dict:
        """Most recent message of one type."""
        return [m for m in self.messages if m["type"] == message_type][-1]


def make_event(
    session_id: str = "s1",
    page: str = "/home",
    event_type: EventType = EventType.PAGEVIEW,
    country: str = "US",
    timestamp: datetime | None = None,
) -> VisitorEvent:
    return VisitorEvent(
        type=event_type,
        session_id=session_id,
        page=page,
        country=country,
        timestamp=timestamp,
    )


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def store(clock):
    return EventStore(clock=clock)


@pytest.fixture()
def registry(clock):
    return ConnectionRegistry(clock=clock)


@pytest.fixture()
def router(store, registry, clock):
    return BroadcastRouter(store, registry, detector=MilestoneDetector(), clock=clock)


@pytest.fixture()
def dispatcher(store, registry, router, clock):
    return MessageDispatcher(store, registry, router, clock=clock)
