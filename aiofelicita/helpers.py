"""Helper functions for finding and probing Felicita scales."""

import logging

from bleak import BleakClient, BleakScanner, BLEDevice
from bleak.exc import BleakDeviceNotFoundError, BleakError

from .const import CHARACTERISTIC_UUID_DATA, SCALE_START_NAMES
from .exceptions import FelicitaDeviceNotFound, FelicitaError, FelicitaUnknownDevice

_LOGGER = logging.getLogger(__name__)


async def find_felicita_devices(
    timeout: float = 10.0, scanner: BleakScanner | None = None
) -> list[BLEDevice]:
    """Find FELICITA devices by scanning and then filtering by name."""
    _LOGGER.debug("Looking for FELICITA devices with timeout: %s s", timeout)

    if scanner is None:
        async with BleakScanner() as new_scanner:
            devices = await scan(new_scanner, timeout)
    else:
        devices = await scan(scanner, timeout)

    felicita_devices: list[BLEDevice] = []
    for device in devices:
        if device.name and any(
            device.name.upper().startswith(prefix) for prefix in SCALE_START_NAMES
        ):
            _LOGGER.debug(
                "Found matching device: Name='%s', Address='%s'",
                device.name,
                device.address,
            )
            felicita_devices.append(device)

    return felicita_devices


async def scan(scanner: BleakScanner, timeout: float) -> list[BLEDevice]:
    """Scan for BLE devices and return all discovered ones."""
    devices = await scanner.discover(timeout=timeout)
    for d in devices:
        _LOGGER.debug("Found device with name: %s and address: %s", d.name, d.address)
    return list(devices)


async def is_felicita_scale(address_or_ble_device: str | BLEDevice) -> bool:
    """Check if the device exposes the Felicita data characteristic."""

    try:
        async with BleakClient(address_or_ble_device) as client:
            characteristics = [
                char.uuid for char in client.services.characteristics.values()
            ]
    except BleakDeviceNotFoundError as ex:
        raise FelicitaDeviceNotFound("Device not found") from ex
    except BleakError as ex:
        raise FelicitaError(ex) from ex

    if CHARACTERISTIC_UUID_DATA in characteristics:
        return True

    raise FelicitaUnknownDevice
