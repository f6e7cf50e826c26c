"""Stateful stand-in for a Felicita scale, without any bluetooth I/O."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from .const import State, Unit
from .dispatch import EventDispatcher
from .exceptions import FelicitaInvalidArgument
from .models import ConnectionStatus, DataPoint
from .settle import SettleSequencer
from .stopwatch import Stopwatch


class MockScale:
    """Mock scale, reports itself as connected and applies commands instantly."""

    def __init__(self, name: str = "Mock Scale", battery_level_raw: int = 100) -> None:
        self.name = name
        self._connection_status = ConnectionStatus(State.CONNECTED)
        self._battery_level_raw = battery_level_raw
        self._is_buzzing_on_touch = False
        self.is_high_precision = False
        self._unit = Unit.GRAMS
        self._timer = Stopwatch()

        self._data_dispatcher: EventDispatcher[DataPoint] = EventDispatcher("data")
        self._state_dispatcher: EventDispatcher[ConnectionStatus] = EventDispatcher("state")
        self._sequencer = SettleSequencer(
            observe=lambda: self._is_buzzing_on_touch,
            toggle=self.toggle_buzzing_on_touch,
            poll_interval=0,
        )

    async def __aenter__(self) -> MockScale:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def connection_status(self) -> ConnectionStatus:
        return self._connection_status

    @property
    def battery_level(self) -> float:
        return min(self._battery_level_raw, 100) / 100.0

    @property
    def battery_level_raw(self) -> int:
        return self._battery_level_raw

    @property
    def unit(self) -> Unit:
        return self._unit

    @property
    def is_buzzing_on_touch(self) -> bool:
        return self._is_buzzing_on_touch

    @property
    def elapsed_time(self) -> float:
        return self._timer.elapsed()

    def register_data_callback(
        self, callback: Callable[[DataPoint], None]
    ) -> Callable[[], None]:
        return self._data_dispatcher.register_callback(callback)

    def register_data_queue(self, queue: asyncio.Queue[DataPoint]) -> Callable[[], None]:
        return self._data_dispatcher.register_queue(queue)

    def register_state_callback(
        self, callback: Callable[[ConnectionStatus], None]
    ) -> Callable[[], None]:
        return self._state_dispatcher.register_callback(callback)

    def register_state_queue(
        self, queue: asyncio.Queue[ConnectionStatus]
    ) -> Callable[[], None]:
        return self._state_dispatcher.register_queue(queue)

    async def start(self) -> None:
        self._state_dispatcher.dispatch(self._connection_status)

    async def wait_connected(self, timeout: float | None = None) -> None:
        return None

    async def close(self) -> None:
        if self._connection_status.state is State.CLOSED:
            return
        self._connection_status = ConnectionStatus(State.CLOSED)
        self._state_dispatcher.dispatch(self._connection_status)

    async def tare(self) -> None:
        return None

    async def set_unit(self, unit: Unit) -> None:
        if unit is Unit.UNKNOWN:
            raise FelicitaInvalidArgument(f"invalid unit requested: {unit}")
        self._unit = unit

    async def toggle_precision(self) -> None:
        self.is_high_precision = not self.is_high_precision

    async def toggle_buzzing_on_touch(self) -> None:
        self._is_buzzing_on_touch = not self._is_buzzing_on_touch

    async def buzz(self, n: int) -> None:
        await self._sequencer.buzz(n)

    async def start_timer(self) -> None:
        self._timer.start()

    async def stop_timer(self) -> None:
        self._timer.stop()

    async def reset_timer(self) -> None:
        self._timer.reset()
