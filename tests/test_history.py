from __future__ import annotations

from datetime import time

import pytest

from flexglove.core.history import HistoryBuffer
from flexglove.core.models import Sample


def _sample(i: int) -> Sample:
    return Sample.from_values([i % 181] * 5, timestamp=time(0, i // 60, i % 60))


def test_append_evicts_oldest_first() -> None:
    history = HistoryBuffer(capacity=50)
    samples = [_sample(i) for i in range(60)]
    for s in samples:
        history.append(s)

    snap = history.snapshot()
    assert len(history) == 50
    assert snap == samples[10:]
    assert snap[0] is samples[10]
    assert history.latest() is samples[-1]


def test_clear_is_idempotent() -> None:
    history = HistoryBuffer(capacity=3)
    history.extend(_sample(i) for i in range(5))
    history.clear()
    assert history.snapshot() == []
    history.clear()
    assert history.snapshot() == []
    assert history.latest() is None


def test_snapshot_is_a_copy() -> None:
    history = HistoryBuffer(capacity=3)
    history.append(_sample(1))
    snap = history.snapshot()
    snap.clear()
    assert len(history) == 1


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        HistoryBuffer(capacity=0)
