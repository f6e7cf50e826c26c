import argparse
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from aiofelicita.cli import (
    build_logger_parser,
    build_tool_parser,
    config_from_args,
    parse_listen,
    run_tool,
)
from aiofelicita.const import BuzzerSetting
from aiofelicita.exceptions import FelicitaConnectError
from aiofelicita.mock import MockScale
from aiofelicita.models import DeviceIdentity


class TestParsers:
    def test_logger_defaults(self):
        args = build_logger_parser().parse_args([])
        assert args.name == "FELICITA"
        assert args.addr is None
        assert args.listen is None
        assert config_from_args(args).force_buzzer_setting is BuzzerSetting.UNSET

    def test_logger_overrides(self):
        args = build_logger_parser().parse_args(
            ["--name", "ARC", "--addr", "AA:BB", "--force-buzzer", "off", "--listen", ":8080"]
        )
        config = config_from_args(args)
        assert config.identity == DeviceIdentity(name="ARC", device_id="AA:BB")
        assert config.force_buzzer_setting is BuzzerSetting.OFF
        assert args.listen == ("0.0.0.0", 8080)

    def test_tool_flags(self):
        args = build_tool_parser().parse_args(["-p", "-b", "--buzz", "3"])
        assert args.toggle_precision
        assert args.toggle_buzzer
        assert args.buzz == 3
        assert config_from_args(args).force_buzzer_setting is BuzzerSetting.UNSET

    def test_parse_listen(self):
        assert parse_listen("127.0.0.1:9000") == ("127.0.0.1", 9000)
        with pytest.raises(argparse.ArgumentTypeError):
            parse_listen("localhost")


class TestRunTool:
    @pytest.mark.asyncio
    async def test_applies_settings(self):
        scale = MockScale()
        args = build_tool_parser().parse_args(["-p", "-b", "--buzz", "2"])
        with patch("aiofelicita.cli.FelicitaScale", return_value=scale):
            assert await run_tool(args) == 0

        assert scale.is_high_precision
        assert scale.is_buzzing_on_touch

    @pytest.mark.asyncio
    async def test_fails_fast_without_connection(self):
        scale = MockScale()
        scale.wait_connected = AsyncMock(side_effect=FelicitaConnectError("not connected"))
        scale.toggle_precision = AsyncMock()
        args = build_tool_parser().parse_args(["-p", "--timeout", "0.1"])
        with patch("aiofelicita.cli.FelicitaScale", return_value=scale):
            assert await run_tool(args) == 1

        scale.toggle_precision.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_scan(self, capsys):
        devices = [SimpleNamespace(address="AA:BB:CC:DD:EE:FF", name="FELICITA")]
        args = build_tool_parser().parse_args(["--scan", "--timeout", "1"])
        with patch(
            "aiofelicita.cli.find_felicita_devices", AsyncMock(return_value=devices)
        ) as find:
            assert await run_tool(args) == 0

        find.assert_awaited_once_with(timeout=1.0)
        assert "AA:BB:CC:DD:EE:FF FELICITA" in capsys.readouterr().out
