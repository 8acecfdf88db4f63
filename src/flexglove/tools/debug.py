"""Opt-in debug switch and timing helper."""

from __future__ import annotations

import logging
import os
import time
from contextlib import contextmanager
from typing import Iterator

DEBUG_FLEXGLOVE = os.getenv("FLEXGLOVE_DEBUG", "").lower() in {"1", "true", "yes", "on"}

logger = logging.getLogger(__name__)


class RunningTimer:
    """Accumulates call durations and logs the average every ``every`` calls."""

    def __init__(self, label: str, every: int = 1000) -> None:
        self.label = label
        self.every = max(1, int(every))
        self.total_s = 0.0
        self.count = 0

    @contextmanager
    def measure(self) -> Iterator[None]:
        if not DEBUG_FLEXGLOVE:
            yield
            return
        start = time.perf_counter()
        try:
            yield
        finally:
            self.total_s += time.perf_counter() - start
            self.count += 1
            if self.count % self.every == 0:
                logger.info(
                    "%s avg %.1f µs over %d calls",
                    self.label,
                    (self.total_s / self.count) * 1e6,
                    self.count,
                )
