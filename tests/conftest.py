"""Shared test fixtures and helpers."""

import json
import random
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from relay.broadcaster import Broadcaster
from relay.connections import Connection
from relay.engine import RelayEngine
from relay.errors import ConnectionClosed
from relay.membership import MembershipManager
from relay.registry import RoomRegistry


class FakeConnection(Connection):
    """In-memory connection that records every decoded frame it is sent.

    ``writable=False`` models a peer whose socket still looks open but fails
    on write.
    """

    def __init__(self, name: str = "conn", writable: bool = True):
        super().__init__(connection_id=name)
        self.writable = writable
        self.sent: list[dict] = []
        self.closed = False
        self.terminated = False
        self._open = True

    @property
    def is_open(self) -> bool:
        return self._open

    def send_text(self, raw: str) -> None:
        if not self._open:
            raise ConnectionClosed(f"{self.id} is closed")
        if not self.writable:
            raise OSError("broken pipe")
        self.sent.append(json.loads(raw))

    def close(self) -> None:
        self._open = False
        self.closed = True

    def terminate(self) -> None:
        self._open = False
        self.terminated = True

    def events(self, event_type: Optional[str] = None) -> list[dict]:
        if event_type is None:
            return list(self.sent)
        return [event for event in self.sent if event["type"] == event_type]

    def types(self) -> list[str]:
        return [event["type"] for event in self.sent]


class FixedRandom(random.Random):
    """Always draws the same number."""

    def __init__(self, value: int):
        super().__init__()
        self.value = value

    def randrange(self, *args, **kwargs) -> int:
        return self.value


class FakeClock:
    def __init__(self, start: Optional[datetime] = None):
        self.current = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock) -> RoomRegistry:
    return RoomRegistry(clock=clock)


@pytest.fixture
def broadcaster(registry) -> Broadcaster:
    return Broadcaster(registry)


@pytest.fixture
def membership(registry, broadcaster) -> MembershipManager:
    return MembershipManager(registry, broadcaster)


@pytest.fixture
def engine(registry) -> RelayEngine:
    return RelayEngine(registry=registry)


@pytest.fixture
def make_connection():
    counter = iter(range(1, 10_000))

    def _make(name: Optional[str] = None, writable: bool = True) -> FakeConnection:
        return FakeConnection(name or f"conn-{next(counter)}", writable=writable)

    return _make
