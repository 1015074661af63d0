"""Process-wide call counters and timing aggregates for the API layer.

Timings are folded into a fixed-size summary per key (count, total, max), so
a long-lived host can call the engine indefinitely without the registry
growing.

    from image_processor.image_engine.metrics import metrics
    with metrics.timed("api.grayscale"):
        ...
    metrics.snapshot()["timings"]["api.grayscale"]["count"]
"""

from __future__ import annotations

import time
from collections import defaultdict
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from threading import Lock
from typing import Any


@dataclass
class TimingSummary:
    count: int = 0
    total: float = 0.0
    max: float = 0.0

    def add(self, elapsed: float) -> None:
        self.count += 1
        self.total += elapsed
        self.max = max(self.max, elapsed)

    @property
    def mean(self) -> float:
        return self.total / self.count if self.count else 0.0


class _Metrics:
    def __init__(self) -> None:
        self._counters: dict[str, int] = defaultdict(int)
        self._timings: dict[str, TimingSummary] = defaultdict(TimingSummary)
        self._lock = Lock()

    def inc(self, key: str, amount: int = 1) -> None:
        with self._lock:
            self._counters[key] += int(amount)

    @contextmanager
    def timed(self, key: str) -> Iterator[None]:
        """Time the block and fold the duration into `key`'s summary, even if it raises."""
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            with self._lock:
                self._timings[key].add(elapsed)

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "counters": dict(self._counters),
                "timings": {k: {**asdict(v), "mean": v.mean} for k, v in self._timings.items()},
            }

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._timings.clear()


metrics = _Metrics()
