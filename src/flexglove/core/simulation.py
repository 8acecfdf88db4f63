"""Synthetic glove data for running the pipeline without hardware."""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import time
from typing import Callable, Dict, List, Optional

from .models import ANGLE_MAX, ANGLE_MIN, Channel, Sample, wall_clock_now

DEFAULT_TICK_INTERVAL_S = 0.5

# Thumb resets instead of walking: above this angle it snaps back near full extension.
THUMB_RESET_ABOVE = 150


@dataclass(frozen=True)
class WalkStep:
    """A coin-flip step: ``up`` degrees on heads, ``-down`` degrees on tails."""

    up: int
    down: int


DEFAULT_STEPS: Dict[Channel, WalkStep] = {
    Channel.INDEX: WalkStep(up=10, down=10),
    Channel.MIDDLE: WalkStep(up=15, down=5),
    Channel.RING: WalkStep(up=5, down=5),
    Channel.PINKY: WalkStep(up=8, down=8),
}


def _clamp(value: int) -> int:
    return max(ANGLE_MIN, min(ANGLE_MAX, value))


class SimulationSource:
    """
    Bounded random walk per finger, producing plausible flexion cycles.

    Index, middle, ring and pinky move by a signed, channel-specific step and
    are clamped to [0, 180]. The thumb is drawn afresh each tick: from [20, 60)
    normally, or from [0, 20) when the previous value exceeded 150, which
    emulates a return to full extension.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        steps: Optional[Dict[Channel, WalkStep]] = None,
        clock: Callable[[], time] = wall_clock_now,
    ) -> None:
        self._rng = rng or random.Random()
        self._steps = dict(DEFAULT_STEPS if steps is None else steps)
        self._clock = clock
        self._values: List[int] = [0] * len(Channel)
        self.ticks = 0

    @property
    def current(self) -> List[int]:
        return list(self._values)

    def seed_values(self, values: List[int]) -> None:
        if len(values) != len(Channel):
            raise ValueError(f"expected {len(Channel)} values, got {len(values)}")
        self._values = [_clamp(int(v)) for v in values]

    def reset(self) -> None:
        self._values = [0] * len(Channel)
        self.ticks = 0

    def tick(self) -> Sample:
        """Advance every channel one step and return the new sample."""
        values = list(self._values)
        values[Channel.THUMB] = self._next_thumb(values[Channel.THUMB])
        for channel, step in self._steps.items():
            delta = step.up if self._rng.random() > 0.5 else -step.down
            values[channel] = _clamp(values[channel] + delta)
        self._values = values
        self.ticks += 1
        return Sample.from_values(values, timestamp=self._clock())

    def _next_thumb(self, previous: int) -> int:
        if previous > THUMB_RESET_ABOVE:
            return self._rng.randrange(0, 20)
        return self._rng.randrange(20, 60)
