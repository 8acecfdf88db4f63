"""Core ingestion pipeline: samples, buffers, reassembly and sessions.

Chunks from the transport flow through :class:`FrameReassembler`, are decoded
by :mod:`flexglove.sensors.glove` and land in a :class:`HistoryBuffer` owned by
:class:`~flexglove.core.session.ConnectionSession`. :class:`SimulationSource`
produces the same samples without hardware.
"""

# Data structures shared by the pipeline
from .history import DEFAULT_HISTORY_CAPACITY, HistoryBuffer
from .models import Channel, DataSource, Sample, SessionState
from .reassembler import DEFAULT_REASSEMBLY_LIMIT, FrameReassembler, FramingMode
from .simulation import SimulationSource

# ConnectionSession lives in .session; it depends on sensors/ and config/, so
# it is not imported here to keep ``flexglove.core`` importable from both.

__all__ = [
    "Channel",
    "DataSource",
    "Sample",
    "SessionState",
    "HistoryBuffer",
    "DEFAULT_HISTORY_CAPACITY",
    "FrameReassembler",
    "FramingMode",
    "DEFAULT_REASSEMBLY_LIMIT",
    "SimulationSource",
]
