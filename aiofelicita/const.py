"""Constants for aiofelicita."""

from enum import IntEnum, StrEnum
from typing import Final

DEFAULT_DEVICE_NAME: Final = "FELICITA"
SCALE_START_NAMES: Final = ["FELICITA"]
SERVICE_UUID = "0000ffe0-0000-1000-8000-00805f9b34fb"
CHARACTERISTIC_UUID_DATA = "0000ffe1-0000-1000-8000-00805f9b34fb"

DEFAULT_MTU: Final = 500

# Notification frame layout
FRAME_LENGTH: Final = 18
WEIGHT_SLICE: Final = slice(2, 9)
UNIT_SLICE: Final = slice(9, 11)
BUZZER_FLAG_INDEX: Final = 14
BATTERY_INDEX: Final = 15
BUZZER_ON_SENTINEL: Final = 0x22

# Raw battery calibration (protocol revision dependent)
MIN_BATTERY_LEVEL: Final = 129
MAX_BATTERY_LEVEL: Final = 158

# Single byte command opcodes
CMD_START_TIMER: Final = 0x52
CMD_STOP_TIMER: Final = 0x53
CMD_RESET_TIMER: Final = 0x43
CMD_TOGGLE_BUZZER: Final = 0x42
CMD_TOGGLE_PRECISION: Final = 0x44
CMD_TARE: Final = 0x54
CMD_TOGGLE_UNIT: Final = 0x55

BT_SETTLE_DELAY: Final = 0.05  # seconds between polls of the observed state
BT_SETTLE_RETRIES: Final = 100
RECONNECT_DELAY: Final = 0.1  # seconds between disconnect and rescan


class Unit(StrEnum):
    """Unit of the weight measurement."""

    UNKNOWN = "--"
    GRAMS = "g"
    OUNCES = "oz"


class State(IntEnum):
    """Connection state of the scale."""

    SCANNING = 0
    CONNECTED = 1
    DISCONNECTED = 2
    CLOSED = 3


class BuzzerSetting(StrEnum):
    """Buzzer (on touch) setting to enforce once a connection is established."""

    UNSET = ""
    ON = "on"
    OFF = "off"
