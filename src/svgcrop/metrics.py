"""Per-batch counters and durations for cropping runs."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from time import perf_counter
from typing import Dict, List, Optional


@dataclass
class MetricsTracker:
    """Named durations (seconds) and path counters of one run."""

    timings: Dict[str, float] = field(default_factory=dict)
    counters: Dict[str, float] = field(default_factory=dict)

    def add_time(self, key: str, duration: float) -> None:
        self.timings[key] = self.get_time(key) + max(duration, 0.0)

    def increment(self, key: str, value: float = 1.0) -> None:
        self.counters[key] = self.get_count(key) + value

    def get_time(self, key: str) -> float:
        return self.timings.get(key, 0.0)

    def get_count(self, key: str) -> float:
        return self.counters.get(key, 0.0)

    def report(self) -> List[str]:
        lines = [f"{key}={value * 1000.0:.1f} ms" for key, value in sorted(self.timings.items())]
        lines.extend(f"{key}={value:g}" for key, value in sorted(self.counters.items()))
        return lines


class Timer:
    """``with Timer("crop.batch", tracker=t, logger=log):`` times the block."""

    def __init__(
        self,
        key: str,
        *,
        tracker: Optional[MetricsTracker] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.key = key
        self.tracker = tracker
        self.logger = logger
        self.duration = 0.0
        self._started = 0.0

    def __enter__(self) -> "Timer":
        self._started = perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.duration = perf_counter() - self._started
        if self.tracker is not None:
            self.tracker.add_time(self.key, self.duration)
        if self.logger is not None:
            self.logger.debug("%s took %.3f s", self.key, self.duration)


__all__ = ["MetricsTracker", "Timer"]
