"""Command line front ends for Felicita scales."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal

from .api import start_api
from .const import DEFAULT_DEVICE_NAME, BuzzerSetting
from .exceptions import FelicitaError
from .felicitascale import FelicitaScale
from .helpers import find_felicita_devices
from .mock import MockScale
from .models import ConnectionStatus, DataPoint, DeviceIdentity, FelicitaConfig

_LOGGER = logging.getLogger(__name__)


def _add_device_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--name", default=DEFAULT_DEVICE_NAME, help="name of remote peripheral"
    )
    parser.add_argument(
        "--addr",
        default=None,
        help="address of remote peripheral (MAC on Linux, UUID on macOS)",
    )
    parser.add_argument("--debug", action="store_true", help="enable debug logging")


def parse_listen(value: str) -> tuple[str, int]:
    """Split HOST:PORT, an empty host listening on all interfaces."""
    host, _, port = value.rpartition(":")
    try:
        return host or "0.0.0.0", int(port)
    except ValueError as ex:
        raise argparse.ArgumentTypeError(f"invalid listen address: {value}") from ex


def build_logger_parser() -> argparse.ArgumentParser:
    """Return the argument parser of felicita-logger."""
    parser = argparse.ArgumentParser(
        prog="felicita-logger", description="Print measurements of a Felicita scale."
    )
    _add_device_arguments(parser)
    parser.add_argument(
        "--force-buzzer",
        choices=[BuzzerSetting.ON.value, BuzzerSetting.OFF.value],
        default=None,
        help="buzzer on touch setting to enforce once connected",
    )
    parser.add_argument(
        "--listen",
        metavar="HOST:PORT",
        type=parse_listen,
        default=None,
        help="serve the HTTP API",
    )
    parser.add_argument(
        "--mock", action="store_true", help="use a mock scale instead of bluetooth"
    )
    return parser


def build_tool_parser() -> argparse.ArgumentParser:
    """Return the argument parser of felicita-tool."""
    parser = argparse.ArgumentParser(
        prog="felicita-tool", description="Change settings of a Felicita scale."
    )
    _add_device_arguments(parser)
    parser.add_argument(
        "-p", dest="toggle_precision", action="store_true", help="toggle the scale precision"
    )
    parser.add_argument(
        "-b",
        dest="toggle_buzzer",
        action="store_true",
        help="toggle the buzzer on touch / action feature",
    )
    parser.add_argument("--buzz", type=int, default=0, metavar="N", help="buzz N times")
    parser.add_argument(
        "--scan", action="store_true", help="list nearby scales and exit"
    )
    parser.add_argument(
        "--timeout", type=float, default=30.0, help="seconds to wait for the scale"
    )
    return parser


def config_from_args(args: argparse.Namespace) -> FelicitaConfig:
    """Build the session configuration from parsed command line arguments."""
    force_buzzer = getattr(args, "force_buzzer", None)
    return FelicitaConfig(
        identity=DeviceIdentity(name=args.name, device_id=args.addr),
        force_buzzer_setting=BuzzerSetting(force_buzzer or ""),
    )


def setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _install_signal_handlers(stop: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)


async def run_logger(args: argparse.Namespace) -> int:
    """Print data points and state changes until interrupted."""
    scale: FelicitaScale | MockScale = (
        MockScale() if args.mock else FelicitaScale(config_from_args(args))
    )
    stop = asyncio.Event()
    _install_signal_handlers(stop)

    def on_state_change(status: ConnectionStatus) -> None:
        print(f"State change: {status.state.name} (error: {status.error})")

    data_queue: asyncio.Queue[DataPoint] = asyncio.Queue(maxsize=256)
    scale.register_state_callback(on_state_change)
    scale.register_data_queue(data_queue)

    async def print_data() -> None:
        while True:
            data = await data_queue.get()
            print(
                f"{data.timestamp.isoformat()} {data.weight:.2f} {data.unit} "
                f"state={scale.connection_status.state.name} "
                f"battery={scale.battery_level:.2f} "
                f"buzzer={scale.is_buzzing_on_touch} "
                f"elapsed={scale.elapsed_time:.1f}s"
            )

    runner = None
    async with scale:
        if args.listen:
            runner = await start_api(scale, *args.listen)

        printer = asyncio.create_task(print_data())
        await stop.wait()
        _LOGGER.info("Got signal, terminating connection to device")
        printer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await printer

        if runner is not None:
            await runner.cleanup()

    return 0


async def run_tool(args: argparse.Namespace) -> int:
    """Apply the requested settings to the scale."""
    if args.scan:
        for device in await find_felicita_devices(timeout=args.timeout):
            print(f"{device.address} {device.name}")
        return 0

    async with FelicitaScale(config_from_args(args)) as scale:
        try:
            await scale.wait_connected(args.timeout)
        except FelicitaError as ex:
            _LOGGER.error("Failed to initialize Felicita scale: %s", ex)
            return 1

        try:
            if args.toggle_precision:
                await scale.toggle_precision()
            if args.toggle_buzzer:
                await scale.toggle_buzzing_on_touch()
            if args.buzz:
                await scale.buzz(args.buzz)
        except FelicitaError as ex:
            _LOGGER.error("Failed to apply settings: %s", ex)
            return 1

    return 0


def logger_main(argv: list[str] | None = None) -> int:
    """Entry point of felicita-logger."""
    args = build_logger_parser().parse_args(argv)
    setup_logging(args.debug)
    return asyncio.run(run_logger(args))


def tool_main(argv: list[str] | None = None) -> int:
    """Entry point of felicita-tool."""
    args = build_tool_parser().parse_args(argv)
    setup_logging(args.debug)
    return asyncio.run(run_tool(args))
