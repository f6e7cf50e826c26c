"""Asynchronous client for Felicita bluetooth coffee scales."""

from .const import BuzzerSetting, State, Unit
from .exceptions import (
    FelicitaConnectError,
    FelicitaDeviceNotFound,
    FelicitaDeviceNotReady,
    FelicitaError,
    FelicitaInvalidArgument,
    FelicitaSettleTimeout,
    FelicitaUnknownDevice,
)
from .felicitascale import FelicitaScale
from .helpers import find_felicita_devices, is_felicita_scale
from .models import ConnectionStatus, DataPoint, DeviceIdentity, FelicitaConfig

__all__ = [
    "BuzzerSetting",
    "ConnectionStatus",
    "DataPoint",
    "DeviceIdentity",
    "FelicitaConfig",
    "FelicitaConnectError",
    "FelicitaDeviceNotFound",
    "FelicitaDeviceNotReady",
    "FelicitaError",
    "FelicitaInvalidArgument",
    "FelicitaScale",
    "FelicitaSettleTimeout",
    "FelicitaUnknownDevice",
    "State",
    "Unit",
    "find_felicita_devices",
    "is_felicita_scale",
]
