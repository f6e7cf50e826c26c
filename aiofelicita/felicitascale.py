"""Client to interact with Felicita scales."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime
import logging

from .connection import ConnectionStateMachine
from .const import (
    CMD_RESET_TIMER,
    CMD_START_TIMER,
    CMD_STOP_TIMER,
    CMD_TARE,
    CMD_TOGGLE_BUZZER,
    CMD_TOGGLE_PRECISION,
    CMD_TOGGLE_UNIT,
    BuzzerSetting,
    Unit,
)
from .decode import decode, encode, parse_battery_level
from .dispatch import EventDispatcher
from .exceptions import FelicitaInvalidArgument
from .models import ConnectionStatus, DataPoint, FelicitaConfig
from .settle import SettleSequencer
from .stopwatch import Stopwatch

_LOGGER = logging.getLogger(__name__)


class FelicitaScale:
    """Representation of a Felicita scale."""

    def __init__(self, config: FelicitaConfig | None = None) -> None:
        """Initialize the scale."""

        self._config = config or FelicitaConfig()
        self._logger = self._config.logger or _LOGGER
        self.name = self._config.identity.name

        # state reported by the scale, written by the notification handler only
        self._weight: float | None = None
        self._battery_level_raw = 0
        self._is_buzzing_on_touch = False
        self._unit = Unit.UNKNOWN
        self._has_received_data = False

        self._timer = Stopwatch()
        self._force_task: asyncio.Task | None = None

        self._data_dispatcher: EventDispatcher[DataPoint] = EventDispatcher(
            "data", self._logger
        )
        self._state_dispatcher: EventDispatcher[ConnectionStatus] = EventDispatcher(
            "state", self._logger
        )

        self._connection = ConnectionStateMachine(
            self._config,
            on_notification=self._on_bluetooth_data_received,
            on_status=self._state_dispatcher.dispatch,
            on_connected=self._on_connected,
        )
        self._sequencer = SettleSequencer(
            observe=lambda: self._is_buzzing_on_touch,
            toggle=self.toggle_buzzing_on_touch,
            poll_interval=self._config.settle_delay,
            max_retries=self._config.settle_retries,
        )

    async def __aenter__(self) -> FelicitaScale:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def connection_status(self) -> ConnectionStatus:
        """Return the current status of the bluetooth connection."""
        return self._connection.status

    @property
    def weight(self) -> float | None:
        """Return the last reported weight."""
        return self._weight

    @property
    def battery_level(self) -> float:
        """Return the battery level as a fraction in [0, 1]."""
        return parse_battery_level(
            self._battery_level_raw, self._config.battery_min, self._config.battery_max
        )

    @property
    def battery_level_raw(self) -> int:
        """Return the battery level in its raw form."""
        return self._battery_level_raw

    @property
    def unit(self) -> Unit:
        """Return the current weight unit."""
        return self._unit

    @property
    def is_buzzing_on_touch(self) -> bool:
        """Return if the buzzer (on user interaction) is turned on."""
        return self._is_buzzing_on_touch

    @property
    def elapsed_time(self) -> float:
        """Return the current timer value in seconds."""
        return self._timer.elapsed()

    def register_data_callback(
        self, callback: Callable[[DataPoint], None]
    ) -> Callable[[], None]:
        """Register a callback to be called for every measurement."""
        return self._data_dispatcher.register_callback(callback)

    def register_data_queue(self, queue: asyncio.Queue[DataPoint]) -> Callable[[], None]:
        """Register a queue receiving every measurement (dropped if full)."""
        return self._data_dispatcher.register_queue(queue)

    def register_state_callback(
        self, callback: Callable[[ConnectionStatus], None]
    ) -> Callable[[], None]:
        """Register a callback to be called upon connection state change."""
        return self._state_dispatcher.register_callback(callback)

    def register_state_queue(
        self, queue: asyncio.Queue[ConnectionStatus]
    ) -> Callable[[], None]:
        """Register a queue receiving every state change (dropped if full)."""
        return self._state_dispatcher.register_queue(queue)

    async def start(self) -> None:
        """Start looking for the scale and keep connected to it."""
        self._connection.start()

    async def wait_connected(self, timeout: float | None = None) -> None:
        """Wait until the scale is connected."""
        await self._connection.wait_connected(timeout)

    async def close(self) -> None:
        """Terminate the connection to the scale."""
        if self._force_task is not None:
            self._force_task.cancel()
        await self._connection.close()

    async def tare(self) -> None:
        """Tare the scale."""
        await self._write(CMD_TARE)

    async def set_unit(self, unit: Unit) -> None:
        """Switch the weight unit between grams and ounces."""
        if unit is Unit.UNKNOWN:
            raise FelicitaInvalidArgument(f"invalid unit requested: {unit}")

        # The scale only knows a toggle, so the target is tracked here
        if self._unit is not Unit.UNKNOWN and self._unit == unit:
            return

        await self._write(CMD_TOGGLE_UNIT)

    async def toggle_precision(self) -> None:
        """Toggle the weight precision between 0.1 and 0.01."""
        await self._write(CMD_TOGGLE_PRECISION)

    async def toggle_buzzing_on_touch(self) -> None:
        """Turn the buzzer (on user interaction) on / off."""
        await self._write(CMD_TOGGLE_BUZZER)

    async def buzz(self, n: int) -> None:
        """Make the scale beep / buzz n times."""
        await self._sequencer.buzz(n)

    async def start_timer(self) -> None:
        """Start the timer."""
        await self._write(CMD_START_TIMER)
        self._timer.start()

    async def stop_timer(self) -> None:
        """Stop the timer."""
        await self._write(CMD_STOP_TIMER)
        self._timer.stop()

    async def reset_timer(self) -> None:
        """Reset the timer."""
        await self._write(CMD_RESET_TIMER)
        self._timer.reset()

    async def _write(self, opcode: int) -> None:
        self._logger.debug("Sending command 0x%02x", opcode)
        await self._connection.write(encode(opcode))

    def _on_connected(self) -> None:
        self._has_received_data = False

    def _on_bluetooth_data_received(self, data: bytearray) -> None:
        """Receive data from scale."""

        msg = decode(data)
        if msg is None:
            return

        data_point = DataPoint(timestamp=datetime.now(), weight=msg.weight, unit=msg.unit)
        self._weight = msg.weight
        self._battery_level_raw = msg.battery
        self._is_buzzing_on_touch = msg.buzzer_on
        self._unit = msg.unit

        self._data_dispatcher.dispatch(data_point)

        if not self._has_received_data:
            self._has_received_data = True
            self._schedule_buzzer_setting()

    def _schedule_buzzer_setting(self) -> None:
        """Correct the buzzer setting on the first frame of a connection, if configured."""
        setting = self._config.force_buzzer_setting
        if setting is BuzzerSetting.UNSET:
            return
        if self._is_buzzing_on_touch == (setting is BuzzerSetting.ON):
            return
        if self._force_task is not None and not self._force_task.done():
            return

        self._logger.debug("Forcing buzzer setting to `%s`", setting)
        self._force_task = asyncio.create_task(self.toggle_buzzing_on_touch())
        self._force_task.add_done_callback(self._force_buzzer_setting_done)

    def _force_buzzer_setting_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        ex = task.exception()
        if ex is not None:
            self._logger.warning(
                "Failed to force buzzer setting to `%s`: %s",
                self._config.force_buzzer_setting,
                ex,
            )
