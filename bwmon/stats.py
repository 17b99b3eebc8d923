"""Rolling chart history and whole-session running statistics."""

from __future__ import annotations

import math
import time
from collections import deque
from dataclasses import dataclass, field

from bwmon.sampler import RateSample

DEFAULT_HISTORY = 120


class HistoryBuffer:
    """Fixed-capacity window of recent values, oldest evicted first."""

    def __init__(self, capacity: int = DEFAULT_HISTORY):
        if capacity < 1:
            raise ValueError(f"history capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._data: deque[float] = deque(maxlen=capacity)

    def push(self, value: float) -> None:
        self._data.append(value)

    def snapshot(self) -> list[float]:
        """Oldest-first copy, safe to hand to the renderer."""
        return list(self._data)

    def __len__(self) -> int:
        return len(self._data)


class StatisticsTracker:
    """Running peak / min / mean / variance over every observed value.

    Mean and variance use Welford's update so long sessions never sum an
    unbounded total. Independent of any HistoryBuffer eviction.
    """

    def __init__(self) -> None:
        self.count = 0
        self._peak = 0.0
        self._min: float | None = None
        self._mean = 0.0
        self._m2 = 0.0

    def observe(self, value: float) -> None:
        if not math.isfinite(value):
            return
        self.count += 1
        delta = value - self._mean
        self._mean += delta / self.count
        self._m2 += delta * (value - self._mean)
        self._peak = max(self._peak, value)
        self._min = value if self._min is None else min(self._min, value)

    def peak(self) -> float:
        return self._peak

    def minimum(self) -> float:
        return 0.0 if self._min is None else self._min

    def mean(self) -> float:
        return self._mean

    def variance(self) -> float:
        if self.count < 2:
            return 0.0
        return self._m2 / (self.count - 1)

    def stddev(self) -> float:
        return math.sqrt(self.variance())


@dataclass
class SessionStats:
    """Everything the summary lines need about the session so far."""
    download: StatisticsTracker = field(default_factory=StatisticsTracker)
    upload: StatisticsTracker = field(default_factory=StatisticsTracker)
    total_rx: int = 0
    total_tx: int = 0
    samples: int = 0
    started_at: float = field(default_factory=time.monotonic)

    def record(self, rate: RateSample) -> None:
        self.samples += 1
        self.total_rx += rate.rx_delta
        self.total_tx += rate.tx_delta
        self.download.observe(rate.download_bps)
        self.upload.observe(rate.upload_bps)

    def runtime(self, now: float | None = None) -> float:
        if now is None:
            now = time.monotonic()
        return max(0.0, now - self.started_at)
