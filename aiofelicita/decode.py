"""Message decoding and encoding functions for Felicita scales."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
import re

from .const import (
    BATTERY_INDEX,
    BUZZER_FLAG_INDEX,
    BUZZER_ON_SENTINEL,
    FRAME_LENGTH,
    MAX_BATTERY_LEVEL,
    MIN_BATTERY_LEVEL,
    UNIT_SLICE,
    WEIGHT_SLICE,
    Unit,
)
from .exceptions import FelicitaMessageError, FelicitaMessageTooLong, FelicitaMessageTooShort

_LOGGER = logging.getLogger(__name__)

_WEIGHT_PATTERN = re.compile(rb"[+-]?[0-9]+")


@dataclass(frozen=True)
class FelicitaMessage:
    """Representation of a notification frame of a Felicita scale."""

    weight: float
    unit: Unit
    buzzer_on: bool
    battery: int  # raw, see parse_battery_level

    @classmethod
    def from_payload(cls, payload: bytes | bytearray) -> FelicitaMessage:
        """Parse an 18 byte frame received from the data characteristic.

        The weight is sent as signed ASCII decimal with two implied fractional
        digits, followed by a two character unit hint.
        """
        raw_weight = bytes(payload[WEIGHT_SLICE])
        if _WEIGHT_PATTERN.fullmatch(raw_weight) is None:
            raise FelicitaMessageError(payload, "Non-numeric weight")

        return cls(
            weight=int(raw_weight) / 100.0,
            unit=parse_unit(payload[UNIT_SLICE]),
            buzzer_on=parse_buzzer_flag(payload[BUZZER_FLAG_INDEX]),
            battery=payload[BATTERY_INDEX],
        )


def decode_strict(byte_msg: bytes | bytearray) -> FelicitaMessage:
    """Decode a frame, raising FelicitaMessageError if it is malformed."""
    if len(byte_msg) < FRAME_LENGTH:
        raise FelicitaMessageTooShort(byte_msg)
    if len(byte_msg) > FRAME_LENGTH:
        raise FelicitaMessageTooLong(byte_msg)
    return FelicitaMessage.from_payload(byte_msg)


def decode(byte_msg: bytes | bytearray) -> FelicitaMessage | None:
    """Return the decoded message, or None if the frame has to be dropped.

    The scale occasionally emits partial frames, these are silently discarded.
    """
    try:
        return decode_strict(byte_msg)
    except FelicitaMessageError as ex:
        _LOGGER.debug("%s: %s", ex.message, bytes(ex.bytes_recvd).hex())
        return None


def parse_unit(data: bytes | bytearray) -> Unit:
    """Parse the two character unit hint."""
    if len(data) != 2:
        return Unit.UNKNOWN

    hint = bytes(data).decode("latin-1").lower()
    if "g" in hint:
        return Unit.GRAMS
    if "oz" in hint:
        return Unit.OUNCES

    return Unit.UNKNOWN


def parse_buzzer_flag(data: int) -> bool:
    """Return True if the buzzer (on touch) flag byte signals "on"."""
    return data == BUZZER_ON_SENTINEL


def parse_battery_level(
    data: int,
    minimum: int = MIN_BATTERY_LEVEL,
    maximum: int = MAX_BATTERY_LEVEL,
) -> float:
    """Convert the raw battery byte to a fraction in [0, 1], rounded to 0.01."""
    if data < minimum:
        return 0.0
    if data > maximum:
        return 1.0

    # half-up rounding, round() would round half to even
    return math.floor((data - minimum) / (maximum - minimum) * 100.0 + 0.5) / 100.0


def encode(opcode: int) -> bytes:
    """Encode a command to the scale."""
    return bytes([opcode & 0xFF])
