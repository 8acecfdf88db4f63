"""Sensor-specific frame decoders.

:mod:`glove` turns one text frame from the glove's serial bridge into a
:class:`~flexglove.core.models.Sample`.
"""
