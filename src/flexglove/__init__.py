"""FlexGlove: ingestion pipeline for a five-channel BLE angle-sensor glove.

Raw notification chunks are reassembled into frames, decoded into
:class:`~flexglove.core.models.Sample` objects and kept in a bounded history
that feeds live displays and session summaries.
"""

__version__ = "0.3.0"
