from __future__ import annotations

from typing import Any

import pytest

from counter_queue.dispatcher import CounterState, RequestDispatcher
from counter_queue.sessions import SessionRegistry
from counter_queue.tickets import TicketFactory


class RecordingBroadcaster:
    """Keeps every delivery instead of publishing it."""

    def __init__(self) -> None:
        self.broadcasts: list[tuple[str, dict[str, Any]]] = []
        self.direct: list[tuple[str, str, dict[str, Any]]] = []

    def broadcast_all(self, event: str, payload: dict[str, Any]) -> None:
        self.broadcasts.append((event, payload))

    def send_to(self, connection_id: str, event: str, payload: dict[str, Any]) -> None:
        self.direct.append((connection_id, event, payload))


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def dispatcher(broadcaster, clock) -> RequestDispatcher:
    state = CounterState(sessions=SessionRegistry(clock=clock), factory=TicketFactory(clock=clock))
    return RequestDispatcher(broadcaster=broadcaster, state=state, log=lambda line: None)
