"""Bounded, insertion-ordered window of recent samples."""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Iterable, List, Optional

from .models import Sample

DEFAULT_HISTORY_CAPACITY = 50


class HistoryBuffer:
    """FIFO window of the most recent ``capacity`` samples.

    Appending to a full buffer evicts the oldest sample. The RLock lets the
    ingest loop append while a display or report thread takes snapshots.
    """

    def __init__(self, capacity: int = DEFAULT_HISTORY_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = int(capacity)
        self._samples: Deque[Sample] = deque(maxlen=self._capacity)
        self._lock = threading.RLock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, sample: Sample) -> None:
        with self._lock:
            self._samples.append(sample)

    def extend(self, samples: Iterable[Sample]) -> None:
        with self._lock:
            self._samples.extend(samples)

    def snapshot(self) -> List[Sample]:
        """Return a copy of the window, oldest first."""
        with self._lock:
            return list(self._samples)

    def latest(self) -> Optional[Sample]:
        """Return the newest sample, or ``None`` if the buffer is empty."""
        with self._lock:
            if not self._samples:
                return None
            return self._samples[-1]

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)
