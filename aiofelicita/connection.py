"""Connection lifecycle of a Felicita scale.

The runner task cycles through scanning, connecting and serving the
connection until the link drops, then rescans on its own. Only an explicit
close() ends the cycle.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import logging
from typing import Any

from bleak import BleakGATTCharacteristic, BLEDevice
from bleak.backends.scanner import AdvertisementData
from bleak.exc import BleakError

from .const import CHARACTERISTIC_UUID_DATA, SERVICE_UUID, State
from .exceptions import FelicitaConnectError, FelicitaDeviceNotReady, FelicitaError
from .models import ConnectionStatus, FelicitaConfig

_LOGGER = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (BleakError, asyncio.TimeoutError, OSError)


class ConnectionStateMachine:
    """Own the single connection to the scale and its data characteristic."""

    _service_id = SERVICE_UUID
    _data_char_id = CHARACTERISTIC_UUID_DATA

    def __init__(
        self,
        config: FelicitaConfig,
        on_notification: Callable[[bytearray], None],
        on_status: Callable[[ConnectionStatus], None],
        on_connected: Callable[[], None] | None = None,
    ) -> None:
        self._config = config
        self._identity = config.identity
        self._logger = config.logger or _LOGGER

        self._on_notification = on_notification
        self._on_status = on_status
        self._on_connected = on_connected

        self._status = ConnectionStatus(State.DISCONNECTED)
        self._client: Any = None
        self._characteristic: BleakGATTCharacteristic | None = None

        self._runner: asyncio.Task | None = None
        self._closing = False
        self._shutdown = asyncio.Event()
        self._link_lost: asyncio.Event | None = None
        self._connected = asyncio.Event()

    @property
    def status(self) -> ConnectionStatus:
        """Return the current connection status."""
        return self._status

    def start(self) -> None:
        """Start scanning for the scale (and keep reconnecting) in the background."""
        if self._closing:
            raise FelicitaError("Connection has been closed")
        if self._runner is None or self._runner.done():
            self._runner = asyncio.create_task(self._run())

    async def wait_connected(self, timeout: float | None = None) -> None:
        """Wait until the scale is connected and subscribed.

        Raises FelicitaConnectError on timeout, or when the connection is
        closed before (or while) waiting.
        """
        if self._closing:
            raise FelicitaConnectError("Connection has been closed")

        connected = asyncio.create_task(self._connected.wait())
        shutdown = asyncio.create_task(self._shutdown.wait())
        try:
            done, _ = await asyncio.wait(
                {connected, shutdown},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            connected.cancel()
            shutdown.cancel()

        if connected in done:
            return
        if shutdown in done:
            raise FelicitaConnectError(
                f"Connection to {self._identity.name} closed while waiting"
            )
        raise FelicitaConnectError(
            f"Scale {self._identity.name} not connected within {timeout}s"
        ) from self._status.error

    async def write(self, payload: bytes) -> None:
        """Write a command to the data characteristic."""
        client, characteristic = self._client, self._characteristic
        if client is None or characteristic is None:
            raise FelicitaDeviceNotReady("failed to write to uninitialized device")

        try:
            await client.write_gatt_char(characteristic, payload, response=False)
        except BleakError as ex:
            raise FelicitaError("Error writing to device") from ex
        except asyncio.TimeoutError as ex:
            raise FelicitaError("Timeout writing to device") from ex

    async def close(self) -> None:
        """Terminate the connection and stop rescanning.

        Safe to call more than once, only the first call has an effect.
        """
        if self._closing:
            return
        self._closing = True

        self._logger.debug("Closing connection to %s", self._identity.name)
        self._shutdown.set()
        if self._link_lost is not None:
            self._link_lost.set()

        if self._runner is not None:
            try:
                await self._runner
            except Exception:  # pylint: disable=broad-except
                self._logger.exception("Connection handler failed during shutdown")
            self._runner = None

        self._set_status(State.CLOSED)

    def _set_status(self, state: State, error: Exception | None = None) -> None:
        if self._shutdown.is_set() and state is not State.CLOSED:
            return

        self._status = ConnectionStatus(state=state, error=error)
        if state is State.CONNECTED:
            self._connected.set()
        else:
            self._connected.clear()

        self._logger.debug("Connection state changed to %s (error: %s)", state.name, error)
        self._on_status(self._status)

    async def _run(self) -> None:
        while not self._shutdown.is_set():
            self._set_status(State.SCANNING)
            try:
                device = await self._discover()
            except _TRANSPORT_ERRORS as ex:
                self._logger.warning("Scanning stopped unexpectedly: %s", ex)
                error = FelicitaConnectError(f"failed to scan for devices: {ex}")
                error.__cause__ = ex
                self._set_status(State.DISCONNECTED, error)
                await self._pause()
                continue

            if device is None:
                break

            try:
                error = await self._connect_and_serve(device)
            except Exception as ex:  # pylint: disable=broad-except
                self._logger.error(
                    "Unexpected error in connection to %s: %s (%s)",
                    device.address,
                    type(ex).__name__,
                    ex,
                    exc_info=True,
                )
                error = ex

            self._set_status(State.DISCONNECTED, error)
            await self._pause()

    async def _pause(self) -> None:
        """Wait the reconnect delay, returning early on shutdown."""
        try:
            await asyncio.wait_for(self._shutdown.wait(), self._config.reconnect_delay)
        except asyncio.TimeoutError:
            pass

    async def _discover(self) -> BLEDevice | None:
        """Scan until the configured scale shows up, None on shutdown."""
        found: asyncio.Future[BLEDevice] = asyncio.get_running_loop().create_future()

        def detection_callback(
            device: BLEDevice, advertisement_data: AdvertisementData
        ) -> None:
            name = device.name or advertisement_data.local_name
            self._logger.debug("Discovered device %s/%s", name, device.address)
            if found.done() or not self._identity.matches(name, device.address):
                return
            found.set_result(device)

        shutdown = asyncio.create_task(self._shutdown.wait())
        try:
            async with self._config.scanner_factory(
                detection_callback=detection_callback
            ):
                await asyncio.wait(
                    {found, shutdown}, return_when=asyncio.FIRST_COMPLETED
                )
        finally:
            shutdown.cancel()

        if self._shutdown.is_set() or not found.done():
            found.cancel()
            return None
        return found.result()

    async def _connect_and_serve(self, device: BLEDevice) -> Exception | None:
        """Connect to device and hold the connection until it is released."""
        link_lost = asyncio.Event()
        self._link_lost = link_lost
        if self._shutdown.is_set():
            return None

        def disconnected_callback(_client: Any) -> None:
            self._logger.debug(
                "Scale with address %s disconnected through disconnect handler",
                device.address,
            )
            link_lost.set()

        self._logger.debug("Connecting device %s/%s", device.name, device.address)
        client = self._config.client_factory(
            device, disconnected_callback=disconnected_callback
        )

        setup = asyncio.create_task(self._setup(client))
        shutdown = asyncio.create_task(self._shutdown.wait())
        try:
            await asyncio.wait({setup, shutdown}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            shutdown.cancel()

        if not setup.done():
            setup.cancel()
            await asyncio.wait({setup})
            self._logger.debug("Connect to %s aborted by shutdown", device.address)
            await self._teardown(client)
            return None

        try:
            setup.result()
        except FelicitaConnectError as ex:
            self._logger.warning("Failed to connect to %s: %s", device.address, ex)
            await self._teardown(client)
            return ex

        self._logger.info("Connected to %s", device.address)
        self._set_status(State.CONNECTED)

        await link_lost.wait()
        self._logger.debug("Releasing peripheral %s", device.address)
        await self._teardown(client)
        self._logger.info("Scale %s disconnected.", device.address)
        return None

    async def _setup(self, client: Any) -> None:
        """Run the connect sequence, raising FelicitaConnectError on any failure."""
        try:
            await client.connect()
        except _TRANSPORT_ERRORS as ex:
            raise FelicitaConnectError(f"failed to connect: {ex}") from ex

        try:
            await self._negotiate_mtu(client)
        except _TRANSPORT_ERRORS as ex:
            raise FelicitaConnectError(f"failed to set MTU: {ex}") from ex

        service = client.services.get_service(self._service_id)
        if service is None:
            raise FelicitaConnectError(
                f"failed to discover services: {self._service_id} not found"
            )

        characteristic = service.get_characteristic(self._data_char_id)
        if characteristic is None:
            raise FelicitaConnectError(
                f"failed to discover characteristics: {self._data_char_id} not found"
            )

        self._logger.debug(
            "Data characteristic %s has %d descriptor(s)",
            characteristic.uuid,
            len(characteristic.descriptors),
        )

        try:
            await client.start_notify(characteristic, self._notification_handler)
        except _TRANSPORT_ERRORS as ex:
            raise FelicitaConnectError(f"failed to subscribe characteristic: {ex}") from ex

        self._client = client
        self._characteristic = characteristic
        if self._on_connected is not None:
            self._on_connected()

    async def _negotiate_mtu(self, client: Any) -> None:
        # BlueZ only exchanges the MTU on demand, other backends do it on connect
        backend = getattr(client, "_backend", None)
        if backend.__class__.__name__ == "BleakClientBlueZDBus":
            await backend._acquire_mtu()  # pylint: disable=protected-access

        if client.mtu_size < self._config.mtu:
            self._logger.debug(
                "Negotiated MTU %d is below the requested %d", client.mtu_size, self._config.mtu
            )

    async def _teardown(self, client: Any) -> None:
        self._client = None
        self._characteristic = None
        try:
            await client.disconnect()
        except _TRANSPORT_ERRORS as ex:
            self._logger.debug("Error during BLE disconnect: %s", ex)

    def _notification_handler(
        self,
        characteristic: BleakGATTCharacteristic,  # pylint: disable=unused-argument
        data: bytearray,
    ) -> None:
        self._on_notification(data)
