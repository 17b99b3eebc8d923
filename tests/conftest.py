from __future__ import annotations

from collections import deque

import pytest

from bwmon.sources import CounterSource, InterfaceCounters


class FakeSource(CounterSource):
    """Serves scripted readings, then falls back to the static interface list."""

    name = "fake"

    def __init__(self, interfaces: list[InterfaceCounters], readings=None, on_read=None) -> None:
        super().__init__()
        self.interfaces = list(interfaces)
        self.readings = deque(readings or [])
        self.on_read = on_read
        self.reads = 0

    def list_interfaces(self) -> list[InterfaceCounters]:
        return list(self.interfaces)

    def read_counters(self, interface: str) -> tuple[int, int]:
        self.reads += 1
        if self.on_read is not None:
            self.on_read(self.reads)
        if self.readings:
            reading = self.readings.popleft()
            if isinstance(reading, Exception):
                raise reading
            return reading
        return super().read_counters(interface)


class FakeClock:
    def __init__(self, *times: float) -> None:
        self.times = deque(times)
        self.last = 0.0

    def __call__(self) -> float:
        if self.times:
            self.last = self.times.popleft()
        return self.last


@pytest.fixture
def interfaces() -> list[InterfaceCounters]:
    return [
        InterfaceCounters("eth0", 5_000, 2_500),
        InterfaceCounters("eth1", 90_000, 10_000),
        InterfaceCounters("wlan0", 700, 300),
    ]
