"""Data models for aiofelicita."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
import logging
from typing import Any

from bleak import BleakClient, BleakScanner

from .const import (
    BT_SETTLE_DELAY,
    BT_SETTLE_RETRIES,
    DEFAULT_DEVICE_NAME,
    DEFAULT_MTU,
    MAX_BATTERY_LEVEL,
    MIN_BATTERY_LEVEL,
    RECONNECT_DELAY,
    BuzzerSetting,
    State,
    Unit,
)


@dataclass(frozen=True)
class ConnectionStatus:
    """Current status of the bluetooth connection."""

    state: State
    error: Exception | None = None


@dataclass(frozen=True)
class DataPoint:
    """Weight measurement at a certain point in time."""

    timestamp: datetime
    weight: float
    unit: Unit

    @property
    def value(self) -> float:
        """Return the weight."""
        return self.weight


@dataclass(frozen=True)
class DeviceIdentity:
    """Name and (optional) address identifying the scale during discovery."""

    name: str = DEFAULT_DEVICE_NAME
    device_id: str | None = None

    def matches(self, name: str | None, device_id: str | None) -> bool:
        """Return True if a discovered peripheral is the configured scale.

        The name is always compared, the id only when configured. Both
        comparisons ignore case.
        """
        if not name or name.casefold() != self.name.casefold():
            return False
        if self.device_id:
            return device_id is not None and device_id.casefold() == self.device_id.casefold()
        return True


@dataclass(kw_only=True)
class FelicitaConfig:
    """Construction time configuration of a scale session."""

    identity: DeviceIdentity = field(default_factory=DeviceIdentity)
    force_buzzer_setting: BuzzerSetting = BuzzerSetting.UNSET

    settle_delay: float = BT_SETTLE_DELAY
    settle_retries: int = BT_SETTLE_RETRIES
    reconnect_delay: float = RECONNECT_DELAY
    mtu: int = DEFAULT_MTU

    battery_min: int = MIN_BATTERY_LEVEL
    battery_max: int = MAX_BATTERY_LEVEL

    client_factory: Callable[..., Any] = BleakClient
    scanner_factory: Callable[..., Any] = BleakScanner
    logger: logging.Logger | None = None

    def __post_init__(self) -> None:
        if self.battery_max <= self.battery_min:
            raise ValueError(
                f"invalid battery calibration: {self.battery_min}..{self.battery_max}"
            )
        if self.settle_retries <= 0:
            raise ValueError(f"invalid number of settle retries: {self.settle_retries}")
