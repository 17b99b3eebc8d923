"""Counter differencing — cumulative byte counts to bytes/second."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from bwmon.sources import CounterSnapshot, CounterSource

logger = logging.getLogger(__name__)

# Two readings closer than this are treated as a zero-rate tick.
MIN_ELAPSED_S = 0.001


@dataclass(frozen=True)
class RateSample:
    download_bps: float
    upload_bps: float
    rx_delta: int = 0
    tx_delta: int = 0
    elapsed: float = 0.0

    @property
    def degenerate(self) -> bool:
        return self.elapsed < MIN_ELAPSED_S


ZERO = RateSample(0.0, 0.0)


def compute_rate(prev: CounterSnapshot, cur: CounterSnapshot) -> RateSample:
    """Rate between two snapshots.

    A counter that went backwards (reset or wrap) contributes a delta of 0
    for that tick.
    """
    elapsed = cur.taken_at - prev.taken_at
    if elapsed < MIN_ELAPSED_S:
        return RateSample(0.0, 0.0, elapsed=max(0.0, elapsed))

    rx_delta = max(0, cur.rx_bytes - prev.rx_bytes)
    tx_delta = max(0, cur.tx_bytes - prev.tx_bytes)
    return RateSample(
        download_bps=rx_delta / elapsed,
        upload_bps=tx_delta / elapsed,
        rx_delta=rx_delta,
        tx_delta=tx_delta,
        elapsed=elapsed,
    )


class RateSampler:
    """Reads one interface each tick and differences against the last reading."""

    def __init__(self, source: CounterSource, interface: str,
                 clock: Callable[[], float] = time.monotonic):
        self.source = source
        self.interface = interface
        self._clock = clock
        self.previous: CounterSnapshot | None = None

    def prime(self) -> CounterSnapshot:
        """Take the baseline reading. Raises InterfaceVanished."""
        self.previous = self.source.snapshot(self.interface, self._clock)
        return self.previous

    def sample(self, prev: CounterSnapshot, cur: CounterSnapshot) -> RateSample:
        rate = compute_rate(prev, cur)
        if rate.degenerate:
            # keep the older baseline so the bytes land in the next tick
            logger.debug("samples %.6fs apart, reporting zero rate", rate.elapsed)
        else:
            self.previous = cur
        return rate

    def tick(self) -> RateSample:
        """Read the counters now and return the rate since the previous tick."""
        if self.previous is None:
            self.prime()
            return ZERO
        cur = self.source.snapshot(self.interface, self._clock)
        return self.sample(self.previous, cur)
