"""BLE transport for the glove's serial bridge, built on :mod:`bleak`."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Optional, Sequence

from bleak import BleakClient, BleakScanner
from bleak.backends.characteristic import BleakGATTCharacteristic
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData
from bleak.exc import BleakError
from bleak.uuids import normalize_uuid_str

from ..config.runtime import GloveConfig
from ..core.errors import PermissionDenied, TransportUnavailable, UserCancelled

logger = logging.getLogger(__name__)

_PERMISSION_MARKERS = ("notpermitted", "notauthorized", "not authorized", "unauthorized", "permission")


def _translate(exc: Exception) -> Exception:
    """Map bleak/OS failures onto session errors."""
    text = str(exc).lower()
    if isinstance(exc, PermissionError) or any(m in text for m in _PERMISSION_MARKERS):
        return PermissionDenied(str(exc))
    return TransportUnavailable(str(exc))


class BleakTransport:
    """
    Thin async wrapper around BleakScanner/BleakClient.

    Call from within the asyncio loop that runs the session; bleak delivers
    notifications on that same loop.
    """

    def __init__(self, config: Optional[GloveConfig] = None) -> None:
        self._config = config or GloveConfig()
        self._service_uuids = {normalize_uuid_str(u) for u in self._config.service_uuids}
        self._subscribed: Dict[int, BleakGATTCharacteristic] = {}
        self.device_label: Optional[str] = None

    def _matches(self, device: BLEDevice, adv: AdvertisementData) -> bool:
        wanted = self._config.device_name
        if wanted:
            name = device.name or adv.local_name or ""
            return wanted.lower() in name.lower()
        advertised = {normalize_uuid_str(u) for u in adv.service_uuids or ()}
        return bool(advertised & self._service_uuids)

    async def scan(self) -> BLEDevice:
        timeout = self._config.scan_timeout_s
        logger.info("Scanning for glove (%.1fs, name filter=%r)", timeout, self._config.device_name)
        try:
            device = await BleakScanner.find_device_by_filter(self._matches, timeout=timeout)
        except (BleakError, OSError) as exc:
            raise _translate(exc) from exc
        if device is None:
            raise UserCancelled("no matching glove found while scanning")
        self.device_label = device.name or device.address
        logger.info("Selected %s (%s)", device.name, device.address)
        return device

    async def connect(self, device: BLEDevice, on_disconnect: Callable[[], None]) -> BleakClient:
        def _on_disconnect(_client: BleakClient) -> None:
            self._subscribed.pop(id(_client), None)
            on_disconnect()

        client = BleakClient(device, disconnected_callback=_on_disconnect)
        try:
            await client.connect()
        except (BleakError, OSError, asyncio.TimeoutError) as exc:
            raise _translate(exc) from exc
        return client

    async def discover_service(self, link: BleakClient, uuid: str) -> Any | None:
        return link.services.get_service(uuid)

    async def discover_characteristic(self, service: Any, uuid: str) -> BleakGATTCharacteristic | None:
        characteristic = service.get_characteristic(uuid)
        if characteristic is not None and "notify" not in characteristic.properties:
            logger.info("Characteristic %s does not support notify", uuid)
            return None
        return characteristic

    async def subscribe(
        self,
        link: BleakClient,
        characteristic: BleakGATTCharacteristic,
        on_chunk: Callable[[bytes], Any],
    ) -> None:
        def _on_notify(_sender: BleakGATTCharacteristic, data: bytearray) -> None:
            on_chunk(bytes(data))

        try:
            await link.start_notify(characteristic, _on_notify)
        except (BleakError, OSError) as exc:
            raise _translate(exc) from exc
        self._subscribed[id(link)] = characteristic

    async def disconnect(self, link: BleakClient) -> None:
        """Stop notifications (if any) and disconnect the client."""
        characteristic = self._subscribed.pop(id(link), None)
        try:
            if characteristic is not None and link.is_connected:
                await link.stop_notify(characteristic)
        except BleakError as exc:
            logger.warning("stop_notify failed: %s", exc)
        finally:
            if link.is_connected:
                await link.disconnect()


async def list_devices(timeout: float = 5.0) -> Sequence[BLEDevice]:
    """Return nearby advertising devices (for a device picker)."""
    return await BleakScanner.discover(timeout=timeout)
