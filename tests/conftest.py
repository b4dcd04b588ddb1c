from __future__ import annotations

import threading
from datetime import datetime
from typing import List, Set, Tuple

import pytest

from udprelay.registry import EndpointRegistry
from udprelay.router import MessageRouter

ALICE = ("127.0.0.1", 40001)
BOB = ("127.0.0.1", 40002)
CAROL = ("127.0.0.1", 40003)

EXPIRY = 30.0


class FakeClock:
    """Monotonic clock the test moves by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingTransport:
    """Collects (text, endpoint) pairs; endpoints in ``broken`` raise on send."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, Tuple[str, int]]] = []
        self.broken: Set[Tuple[str, int]] = set()
        self._lock = threading.Lock()

    def send(self, payload: bytes, endpoint):
        if endpoint in self.broken:
            raise OSError("network unreachable")
        with self._lock:
            self.sent.append((payload.decode("utf-8"), endpoint))

    def to(self, endpoint) -> List[str]:
        return [text for text, ep in self.sent if ep == endpoint]

    def clear(self) -> None:
        self.sent.clear()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    return EndpointRegistry(clock=clock)


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def router(registry, transport):
    return MessageRouter(
        registry, transport, EXPIRY,
        wallclock=lambda: datetime(2024, 1, 1, 12, 34, 56),
    )
