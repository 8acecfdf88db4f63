"""
The glove's serial-to-BLE bridge sends ASCII frames of five comma-separated
integers, one per digit (thumb, index, middle, ring, pinky), each nominally in
[0, 180] degrees:

    "12,45,90,30,0"

Frames may or may not be terminated with ``\\n`` / ``\\r\\n``; splitting the
stream into frames is the job of :mod:`flexglove.core.reassembler`.
``parse_frame()`` only validates and decodes a single frame. Values are passed
through unclamped: range is a property of the source, not of the decoder.
"""

from __future__ import annotations

import logging
import re
from datetime import time
from typing import List, Optional, Sequence

from ..core.errors import MalformedFrame
from ..core.models import CHANNEL_COUNT, Sample, wall_clock_now
from ..tools.debug import RunningTimer

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = ","

# ASCII decimal only: int() alone would also take "1_0" and non-ASCII digits.
_INTEGER = re.compile(r"[+-]?[0-9]+")

_timer = RunningTimer("glove.parse_frame")


def split_fields(frame: str) -> List[str]:
    return [part.strip() for part in frame.split(FIELD_SEPARATOR)]


def _decode_values(frame: str) -> List[int]:
    parts: Sequence[str] = split_fields(frame)
    if len(parts) < CHANNEL_COUNT:
        raise MalformedFrame(
            frame, f"expected at least {CHANNEL_COUNT} fields, got {len(parts)}"
        )
    values = []
    for part in parts[:CHANNEL_COUNT]:
        if _INTEGER.fullmatch(part) is None:
            raise MalformedFrame(frame, f"not a number: {part!r}")
        values.append(int(part))
    return values


def decode_frame(frame: str, now: Optional[time] = None) -> Sample:
    """Decode ``frame`` or raise :class:`MalformedFrame`."""
    values = _decode_values(frame)
    return Sample.from_values(values, timestamp=now if now is not None else wall_clock_now())


def parse_frame(frame: str, now: Optional[time] = None) -> Sample | None:
    """
    Parse one glove frame into a :class:`Sample`.

    Invalid frames return ``None`` so callers can drop them and keep
    streaming. ``now`` overrides the wall-clock timestamp (used by tests).
    """
    with _timer.measure():
        try:
            return decode_frame(frame, now)
        except MalformedFrame as exc:
            logger.debug("Dropping malformed frame: %s", exc)
            return None
