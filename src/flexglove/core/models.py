"""Shared dataclasses and enums for glove sessions and samples."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional, Sequence, Tuple

ANGLE_MIN = 0
ANGLE_MAX = 180
CHANNEL_COUNT = 5


class Channel(enum.IntEnum):
    """One sensed digit; the integer value is the position in the wire frame."""

    THUMB = 0
    INDEX = 1
    MIDDLE = 2
    RING = 3
    PINKY = 4

    @property
    def label(self) -> str:
        return self.name.lower()


class SessionState(enum.Enum):
    DISCONNECTED = "Disconnected"
    SCANNING = "Scanning"
    CONNECTING = "Connecting"
    DISCOVERING_SERVICE = "Discovering service"
    DISCOVERING_CHARACTERISTIC = "Discovering characteristic"
    SUBSCRIBING = "Subscribing"
    STREAMING_ACTIVE = "Streaming"
    STREAMING_PAUSED = "Streaming (paused)"

    @property
    def is_streaming(self) -> bool:
        return self in (SessionState.STREAMING_ACTIVE, SessionState.STREAMING_PAUSED)

    @property
    def is_pending(self) -> bool:
        """True while a connect sequence is still in flight."""
        return self not in (
            SessionState.DISCONNECTED,
            SessionState.STREAMING_ACTIVE,
            SessionState.STREAMING_PAUSED,
        )


class DataSource(enum.Enum):
    DEVICE = "device"
    SIMULATION = "simulation"


def wall_clock_now() -> time:
    """Current local time truncated to whole seconds."""
    return datetime.now().time().replace(microsecond=0)


@dataclass(frozen=True)
class Sample:
    """One reading of all five channels.

    ``timestamp`` is assigned on arrival (the wire payload carries angles only),
    so it says when the host saw the frame, not when the glove sampled it.
    """

    timestamp: time
    channels: Tuple[int, int, int, int, int]

    def __post_init__(self) -> None:
        if len(self.channels) != CHANNEL_COUNT:
            raise ValueError(
                f"Sample needs {CHANNEL_COUNT} channel values, got {len(self.channels)}"
            )

    @classmethod
    def from_values(cls, values: Sequence[int], timestamp: Optional[time] = None) -> Sample:
        return cls(
            timestamp=timestamp if timestamp is not None else wall_clock_now(),
            channels=tuple(int(v) for v in values),  # type: ignore[arg-type]
        )

    def value(self, channel: Channel) -> int:
        return self.channels[int(channel)]

    def in_range(self) -> bool:
        return all(ANGLE_MIN <= v <= ANGLE_MAX for v in self.channels)
