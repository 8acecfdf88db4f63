"""Transports that connect a :class:`~flexglove.core.session.ConnectionSession`
to real hardware. :mod:`ble_transport` talks to the glove over BLE via bleak.
"""

from .ble_transport import BleakTransport

__all__ = ["BleakTransport"]
