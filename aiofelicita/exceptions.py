"""Exceptions for aiofelicita."""

from bleak.exc import BleakDeviceNotFoundError, BleakError


class FelicitaDeviceNotFound(BleakDeviceNotFoundError):
    """Exception when no device is found."""


class FelicitaError(BleakError):
    """Exception for general bleak errors."""


class FelicitaConnectError(FelicitaError):
    """Exception for failures while establishing the connection."""


class FelicitaDeviceNotReady(FelicitaError):
    """Exception when writing to a scale that is not connected."""


class FelicitaSettleTimeout(FelicitaError, TimeoutError):
    """Exception when an observed state does not reach its target in time."""

    def __init__(self, target: bool, budget: float) -> None:
        super().__init__(
            f"target buzzer state {target} was not reached within {budget:.2f}s"
        )
        self.target = target
        self.budget = budget


class FelicitaInvalidArgument(FelicitaError, ValueError):
    """Exception for invalid arguments passed to a scale operation."""


class FelicitaUnknownDevice(Exception):
    """Exception for unknown devices."""


class FelicitaMessageError(Exception):
    """Exception for message errors."""

    def __init__(self, bytes_recvd: bytes | bytearray, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.bytes_recvd = bytes_recvd


class FelicitaMessageTooShort(FelicitaMessageError):
    """Exception for messages that are too short."""

    def __init__(self, bytes_recvd: bytes | bytearray) -> None:
        super().__init__(bytes_recvd, "Message too short")


class FelicitaMessageTooLong(FelicitaMessageError):
    """Exception for messages that are too long."""

    def __init__(self, bytes_recvd: bytes | bytearray) -> None:
        super().__init__(bytes_recvd, "Message too long")
