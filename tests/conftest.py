from dataclasses import dataclass, field

import pytest

from mediakeyrouter.engine.observations import ObservationStore
from mediakeyrouter.engine.sources import Command


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self._t = float(start)

    def __call__(self) -> float:
        return self._t

    def advance(self, seconds: float) -> None:
        self._t += float(seconds)


@dataclass
class FakeSink:
    name: str = "fake"
    result: bool = True
    error: Exception | None = None
    sent: list[Command] = field(default_factory=list)

    def send(self, command: Command) -> bool:
        self.sent.append(command)
        if self.error is not None:
            raise self.error
        return self.result


@dataclass
class FakeMonitor:
    name: str = "fake-monitor"
    state: tuple[bool, bool] = (True, False)
    error: Exception | None = None
    calls: int = 0

    def probe(self) -> tuple[bool, bool]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.state


@dataclass
class FakeSwitch:
    enabled: bool = True


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return ObservationStore(staleness_window=5.0, clock=clock)
