"""Capability interfaces implemented by scale sessions."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from .const import Unit
from .models import ConnectionStatus, DataPoint


@runtime_checkable
class Basic(Protocol):
    """Basic coffee scale."""

    @property
    def connection_status(self) -> ConnectionStatus: ...

    @property
    def battery_level(self) -> float: ...

    @property
    def battery_level_raw(self) -> int: ...

    @property
    def unit(self) -> Unit: ...

    async def set_unit(self, unit: Unit) -> None: ...

    async def tare(self) -> None: ...

    async def toggle_precision(self) -> None: ...

    def register_state_callback(
        self, callback: Callable[[ConnectionStatus], None]
    ) -> Callable[[], None]: ...

    def register_state_queue(
        self, queue: asyncio.Queue[ConnectionStatus]
    ) -> Callable[[], None]: ...

    def register_data_callback(
        self, callback: Callable[[DataPoint], None]
    ) -> Callable[[], None]: ...

    def register_data_queue(self, queue: asyncio.Queue[DataPoint]) -> Callable[[], None]: ...

    async def close(self) -> None: ...


@runtime_checkable
class Buzzer(Protocol):
    """Audible signaling functionality."""

    @property
    def is_buzzing_on_touch(self) -> bool: ...

    async def toggle_buzzing_on_touch(self) -> None: ...

    async def buzz(self, n: int) -> None: ...


@runtime_checkable
class Timer(Protocol):
    """Timer / stopwatch functionality."""

    async def start_timer(self) -> None: ...

    async def stop_timer(self) -> None: ...

    async def reset_timer(self) -> None: ...

    @property
    def elapsed_time(self) -> float: ...


@runtime_checkable
class Scale(Basic, Buzzer, Timer, Protocol):
    """Scale providing all functionality."""
