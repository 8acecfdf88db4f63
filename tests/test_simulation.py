from __future__ import annotations

import random
from datetime import time

from flexglove.analysis.stats import summarize
from flexglove.core.history import HistoryBuffer
from flexglove.core.models import ANGLE_MAX, ANGLE_MIN, Channel
from flexglove.core.simulation import SimulationSource


class _FixedRandom(random.Random):
    """random() always returns ``value``; randrange stays deterministic."""

    def __init__(self, value: float) -> None:
        super().__init__(0)
        self._value = value

    def random(self) -> float:
        return self._value


def test_five_ticks_fill_history_in_range() -> None:
    source = SimulationSource(rng=random.Random(1234))
    history = HistoryBuffer(capacity=50)
    for _ in range(5):
        history.append(source.tick())

    samples = history.snapshot()
    assert len(samples) == 5
    for sample in samples:
        assert all(ANGLE_MIN <= v <= ANGLE_MAX for v in sample.channels)

    summary = summarize(samples)
    assert summary.count == 5
    for channel in Channel:
        assert summary.maximum[channel] >= summary.mean[channel]


def test_walk_stays_clamped_over_many_ticks() -> None:
    source = SimulationSource(rng=random.Random(7))
    for _ in range(2000):
        assert source.tick().in_range()


def test_channel_specific_steps() -> None:
    source = SimulationSource(rng=_FixedRandom(0.9), clock=lambda: time(1, 2, 3))
    source.seed_values([30, 90, 90, 90, 90])
    sample = source.tick()
    assert sample.timestamp == time(1, 2, 3)
    assert sample.value(Channel.INDEX) == 100
    assert sample.value(Channel.MIDDLE) == 105
    assert sample.value(Channel.RING) == 95
    assert sample.value(Channel.PINKY) == 98

    source = SimulationSource(rng=_FixedRandom(0.1))
    source.seed_values([30, 90, 90, 90, 90])
    sample = source.tick()
    assert sample.channels[1:] == (80, 85, 85, 82)


def test_walk_clamps_at_bounds() -> None:
    source = SimulationSource(rng=_FixedRandom(0.1))
    sample = source.tick()
    assert sample.channels[1:] == (0, 0, 0, 0)

    source = SimulationSource(rng=_FixedRandom(0.9))
    source.seed_values([0, 180, 180, 180, 180])
    assert source.tick().channels[1:] == (180, 180, 180, 180)


def test_thumb_resets_after_high_value() -> None:
    rng = random.Random(99)
    for _ in range(50):
        source = SimulationSource(rng=rng)
        source.seed_values([151, 0, 0, 0, 0])
        assert 0 <= source.tick().value(Channel.THUMB) < 20

        source.seed_values([150, 0, 0, 0, 0])
        assert 20 <= source.tick().value(Channel.THUMB) < 60


def test_reset_returns_to_rest() -> None:
    source = SimulationSource(rng=random.Random(3))
    for _ in range(10):
        source.tick()
    source.reset()
    assert source.current == [0, 0, 0, 0, 0]
    assert source.ticks == 0
