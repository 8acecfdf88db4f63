"""Rebuild glove frames from arbitrarily chunked BLE notifications.

Low-cost serial-to-BLE bridges disagree about framing: some terminate each
frame with ``\\n`` or ``\\r\\n``, others push one bare five-field CSV packet per
notification. :class:`FrameReassembler` copes with both using two rules,
checked in this order on every push:

1. newline rule: if the buffer holds a newline, every segment before the last
   newline is a complete frame and the tail stays buffered;
2. field-count rule: otherwise, if the whole buffer already splits into at
   least five fields, the buffer is one complete frame.

If neither rule yields a frame and the buffer grows past ``limit`` characters
it is discarded (counted as an overflow) so garbage can never accumulate.

Once a newline has been seen the stream is treated as newline-terminated and
the field-count rule is switched off; otherwise ``"10,20,30,40,5"`` followed by
``"0\\n"`` would be cut into two bogus frames. While the framing is still
unknown, a field-count candidate is held back until the next push:

* a newline confirms newline framing and the candidate is re-read as a line;
* a chunk holding a ``,`` but no newline starts a new packet, so the candidate
  is emitted alone and the stream switches to field-count framing;
* anything else continues the last field of the candidate.

A candidate is never glued onto the start of the next packet. :meth:`flush`
releases a candidate still held when the stream ends.
"""

from __future__ import annotations

import enum
import logging
import re
import threading
from typing import List

from .errors import BufferOverflow
from .models import CHANNEL_COUNT

logger = logging.getLogger(__name__)

DEFAULT_REASSEMBLY_LIMIT = 50

_LINE_SPLIT = re.compile(r"\r?\n")


class FramingMode(enum.Enum):
    AUTO = "auto"
    NEWLINE = "newline"
    FIELD_COUNT = "field_count"


def _has_enough_fields(text: str) -> bool:
    return len(text.split(",")) >= CHANNEL_COUNT


class FrameReassembler:
    """Turns a sequence of raw text chunks into complete frame strings.

    Frame detection depends on arrival order, so chunks must be pushed in the
    order the transport delivered them. A lock guards the buffer so a
    notification thread can push while another thread calls :meth:`reset`.
    """

    def __init__(
        self,
        limit: int = DEFAULT_REASSEMBLY_LIMIT,
        framing: FramingMode = FramingMode.AUTO,
    ) -> None:
        if limit <= 0:
            raise ValueError("limit must be positive")
        self._limit = int(limit)
        self._initial_framing = FramingMode(framing)
        self._framing = self._initial_framing
        self._buffer = ""
        self._candidate_pending = False
        self._lock = threading.RLock()
        self.overflow_count = 0
        self.frames_emitted = 0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def framing(self) -> FramingMode:
        return self._framing

    @property
    def buffered(self) -> str:
        """Text received but not yet confirmed to form a complete frame."""
        with self._lock:
            return self._buffer

    def push(self, chunk: str) -> List[str]:
        """Append ``chunk`` and return the frames it completed, oldest first."""
        with self._lock:
            if not chunk:
                return []
            frames = self._consume(chunk)
            self.frames_emitted += len(frames)
            return frames

    def flush(self) -> List[str]:
        """Release a held field-count candidate; partial lines stay buffered."""
        with self._lock:
            if not self._candidate_pending:
                return []
            self._candidate_pending = False
            frames = self._take_whole_buffer()
            self.frames_emitted += len(frames)
            return frames

    def reset(self) -> None:
        """Drop buffered text and forget the detected framing."""
        with self._lock:
            self._buffer = ""
            self._candidate_pending = False
            self._framing = self._initial_framing

    # ------------------------------------------------------------------ rules
    def _consume(self, chunk: str) -> List[str]:
        previous = self._buffer
        self._buffer = previous + chunk

        if "\n" in self._buffer:
            return self._split_lines()

        if self._framing is FramingMode.NEWLINE:
            return self._enforce_limit()

        if self._framing is FramingMode.FIELD_COUNT:
            return self._apply_field_count()

        # AUTO: a comma after a held candidate opens the next packet.
        if self._candidate_pending and "," in chunk:
            logger.info("Detected unterminated fixed-field framing")
            self._framing = FramingMode.FIELD_COUNT
            self._candidate_pending = False
            self._buffer = chunk
            return [previous.strip()] + self._apply_field_count()

        if _has_enough_fields(self._buffer):
            self._candidate_pending = True
        return self._enforce_limit()

    def _apply_field_count(self) -> List[str]:
        if _has_enough_fields(self._buffer):
            return self._take_whole_buffer()
        return self._enforce_limit()

    def _split_lines(self) -> List[str]:
        if self._framing is not FramingMode.NEWLINE:
            logger.info("Detected newline-terminated framing")
            self._framing = FramingMode.NEWLINE
        self._candidate_pending = False
        *complete, leftover = _LINE_SPLIT.split(self._buffer)
        self._buffer = leftover
        frames = [segment.strip() for segment in complete if segment.strip()]
        overflow = self._enforce_limit()
        return frames + overflow

    def _take_whole_buffer(self) -> List[str]:
        frame = self._buffer.strip()
        self._buffer = ""
        return [frame] if frame else []

    def _enforce_limit(self) -> List[str]:
        if len(self._buffer) > self._limit:
            error = BufferOverflow(len(self._buffer), self._limit)
            self._buffer = ""
            self._candidate_pending = False
            self.overflow_count += 1
            logger.warning(
                "Reassembly buffer reset (%s); overflow count=%d", error, self.overflow_count
            )
        return []
