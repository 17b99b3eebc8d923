"""Counter sources — where cumulative per-interface byte counts come from.

Linux reads /proc/net/dev directly; everywhere else psutil is used.
The sampling and rendering code only depends on CounterSource.
"""

from __future__ import annotations

import logging
import os
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from bwmon import REGISTRY, register, resolve_source
from bwmon.errors import InterfaceVanished

logger = logging.getLogger(__name__)

PROC_NET_DEV = "/proc/net/dev"
LOOPBACK_NAMES = {"lo", "lo0"}


def is_loopback(name: str) -> bool:
    return name in LOOPBACK_NAMES or name.lower().startswith("loopback")


@dataclass(frozen=True)
class InterfaceCounters:
    """One interface as reported by a source, with its cumulative totals."""
    name: str
    rx_bytes: int
    tx_bytes: int

    @property
    def total(self) -> int:
        return self.rx_bytes + self.tx_bytes


@dataclass(frozen=True)
class CounterSnapshot:
    """Cumulative counters captured at a monotonic instant (seconds)."""
    rx_bytes: int
    tx_bytes: int
    taken_at: float


class CounterSource(ABC):
    """Abstract base for per-interface byte counter providers."""

    name: str = ""          # e.g. "procfs" — used by registry & --source

    def __init__(self, include_loopback: bool = False):
        self.include_loopback = include_loopback

    @abstractmethod
    def list_interfaces(self) -> list[InterfaceCounters]:
        """Return every visible interface in provider order."""

    def read_counters(self, interface: str) -> tuple[int, int]:
        """Return (rx_bytes, tx_bytes) for one interface.

        Raises InterfaceVanished if the interface is no longer reported.
        """
        for iface in self.list_interfaces():
            if iface.name == interface:
                return iface.rx_bytes, iface.tx_bytes
        raise InterfaceVanished(interface, "not reported by " + self.name)

    def snapshot(self, interface: str,
                 clock: Callable[[], float] = time.monotonic) -> CounterSnapshot:
        rx, tx = self.read_counters(interface)
        return CounterSnapshot(rx_bytes=rx, tx_bytes=tx, taken_at=clock())

    def _keep(self, name: str) -> bool:
        return self.include_loopback or not is_loopback(name)

    # ---- availability check ----

    @classmethod
    def is_available(cls) -> bool:
        """Return True if this source can run on the current system."""
        return True


@register
class ProcNetDevSource(CounterSource):
    """Linux counters from /proc/net/dev."""

    name = "procfs"

    def __init__(self, include_loopback: bool = False, path: str = PROC_NET_DEV):
        super().__init__(include_loopback)
        self.path = path

    def list_interfaces(self) -> list[InterfaceCounters]:
        result = []
        with open(self.path) as f:
            for line in f:
                if ":" not in line:
                    continue
                iface, data = line.split(":", 1)
                iface = iface.strip()
                if not self._keep(iface):
                    continue
                parts = data.split()
                if len(parts) < 9:
                    continue
                try:
                    rx = int(parts[0])   # receive bytes
                    tx = int(parts[8])   # transmit bytes
                except ValueError:
                    continue
                result.append(InterfaceCounters(iface, rx, tx))
        return result

    def read_counters(self, interface: str) -> tuple[int, int]:
        try:
            return super().read_counters(interface)
        except OSError as e:
            raise InterfaceVanished(interface, str(e)) from e

    @classmethod
    def is_available(cls) -> bool:
        return os.path.exists(PROC_NET_DEV)


@register
class PsutilSource(CounterSource):
    """Portable counters via psutil (macOS, Windows, BSD)."""

    name = "psutil"

    def __init__(self, include_loopback: bool = False):
        super().__init__(include_loopback)
        import psutil
        self._psutil = psutil

    def list_interfaces(self) -> list[InterfaceCounters]:
        counters = self._psutil.net_io_counters(pernic=True)
        return [
            InterfaceCounters(name, int(c.bytes_recv), int(c.bytes_sent))
            for name, c in counters.items()
            if self._keep(name)
        ]

    @classmethod
    def is_available(cls) -> bool:
        try:
            import psutil  # noqa: F401
            return True
        except ImportError:
            return False


PREFERENCE = ["procfs", "psutil"]


def select_source(name: str | None = None, include_loopback: bool = False) -> CounterSource:
    """Instantiate the named backend, or the first available one."""
    if name:
        canonical = resolve_source(name)
        cls = REGISTRY.get(canonical)
        if cls is None:
            raise ValueError(
                f"Unknown counter source: {name}. "
                f"Available: {', '.join(sorted(REGISTRY))}"
            )
        return cls(include_loopback=include_loopback)

    for canonical in PREFERENCE:
        cls = REGISTRY[canonical]
        if cls.is_available():
            logger.info("using counter source %s", canonical)
            return cls(include_loopback=include_loopback)
    raise RuntimeError("No counter source is available on this system.")
