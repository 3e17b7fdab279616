"""Tests for bridge-then-stream sequencing."""

import asyncio
import stat
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from gps_relay.config import Settings
from gps_relay.errors import (
    BridgeExitError,
    BridgeHandleError,
    BridgeSpawnError,
    ConnectError,
    ExitCode,
    NetworkInitError,
)
from gps_relay.models import ForwardResult, StreamEnd, StreamOutcome
from gps_relay.relay import run_relay, run_remove


def fake_adb(tmp_path: Path, body: str) -> str:
    """Write an executable stand-in for adb and return its path."""
    script = tmp_path / "adb"
    script.write_text(f"#!/bin/sh\n{body}\n")
    script.chmod(script.stat().st_mode | stat.S_IEXEC)
    return str(script)


class TestRunRelay:
    """Sequencing with mocked stages."""

    @pytest.mark.asyncio
    async def test_stream_never_started_when_bridge_fails(self) -> None:
        failed = ForwardResult(
            success=False, returncode=1, output="device not found",
            error=BridgeExitError(1, "device not found"),
        )
        with patch("gps_relay.relay.setup_forward", AsyncMock(return_value=failed)), \
             patch("gps_relay.relay.StreamClient") as mock_client, \
             patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            code = await run_relay(Settings())

        assert code == ExitCode.BRIDGE_EXIT
        mock_client.assert_not_called()
        mock_sleep.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error,expected",
        [
            (BridgeHandleError("pipe"), ExitCode.BRIDGE_HANDLE),
            (BridgeSpawnError("missing"), ExitCode.BRIDGE_SPAWN),
            (BridgeExitError(1), ExitCode.BRIDGE_EXIT),
        ],
    )
    async def test_distinct_exit_code_per_bridge_failure(self, error, expected) -> None:
        failed = ForwardResult(success=False, returncode=None, error=error)
        with patch("gps_relay.relay.setup_forward", AsyncMock(return_value=failed)):
            code = await run_relay(Settings())

        assert code == expected

    @pytest.mark.asyncio
    async def test_settles_then_streams(self) -> None:
        """Waits the settle delay, then runs the client on the local port."""
        ok = ForwardResult(success=True, returncode=0)
        client = MagicMock()
        client.run = AsyncMock(return_value=StreamOutcome(StreamEnd.EOF, 2, 10))
        settings = Settings(local_port=40001, settle_delay=1.0, read_size=512)

        with patch("gps_relay.relay.setup_forward", AsyncMock(return_value=ok)), \
             patch("gps_relay.relay.StreamClient", return_value=client) as mock_cls, \
             patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            code = await run_relay(settings)

        assert code == ExitCode.OK
        mock_sleep.assert_awaited_once_with(1.0)
        kwargs = mock_cls.call_args.kwargs
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 40001
        assert kwargs["read_size"] == 512
        client.run.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "outcome,expected",
        [
            (StreamOutcome(StreamEnd.EOF), ExitCode.OK),
            (StreamOutcome(StreamEnd.ERROR, error=ConnectionResetError()), ExitCode.OK),
            (
                StreamOutcome(StreamEnd.NOT_CONNECTED, error=ConnectError("127.0.0.1", 1, OSError())),
                ExitCode.CONNECT,
            ),
            (
                StreamOutcome(StreamEnd.NOT_CONNECTED, error=NetworkInitError("no socket")),
                ExitCode.NETWORK_INIT,
            ),
        ],
    )
    async def test_exit_code_from_stream_outcome(self, outcome, expected) -> None:
        ok = ForwardResult(success=True, returncode=0)
        client = MagicMock()
        client.run = AsyncMock(return_value=outcome)

        with patch("gps_relay.relay.setup_forward", AsyncMock(return_value=ok)), \
             patch("gps_relay.relay.StreamClient", return_value=client), \
             patch("asyncio.sleep", new_callable=AsyncMock):
            code = await run_relay(Settings())

        assert code == expected

    @pytest.mark.asyncio
    async def test_run_remove(self) -> None:
        ok = ForwardResult(success=True, returncode=0)
        with patch("gps_relay.relay.remove_forward", AsyncMock(return_value=ok)) as mock_remove:
            code = await run_remove(Settings(local_port=40002))

        assert code == ExitCode.OK
        assert mock_remove.call_args.args[0].local_port == 40002


class TestRunRelayEndToEnd:
    """Full run with a stand-in adb script and a loopback GPS peer."""

    @pytest.mark.asyncio
    async def test_forward_then_stream(self, tmp_path: Path) -> None:
        lines = [b'{"latitude":31.23,"longitude":121.47}\n']
        displayed: list[str] = []

        async def handler(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            for line in lines:
                writer.write(line)
                await writer.drain()
            writer.close()
            await writer.wait_closed()

        server = await asyncio.start_server(handler, host="127.0.0.1", port=0)
        port = server.sockets[0].getsockname()[1]
        settings = Settings(
            adb_path=fake_adb(tmp_path, "exit 0"),
            local_port=port,
            settle_delay=0,
        )

        async with server:
            code = await asyncio.wait_for(run_relay(settings, display=displayed.append), 10)

        assert code == ExitCode.OK
        assert "".join(displayed) == lines[0].decode()

    @pytest.mark.asyncio
    async def test_adb_failure_stops_before_connect(self, tmp_path: Path) -> None:
        settings = Settings(
            adb_path=fake_adb(tmp_path, "echo 'error: no devices/emulators found'; exit 1"),
            settle_delay=0,
        )

        with patch("gps_relay.relay.StreamClient") as mock_client:
            code = await run_relay(settings)

        assert code == ExitCode.BRIDGE_EXIT
        mock_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_adb(self, tmp_path: Path) -> None:
        settings = Settings(adb_path=str(tmp_path / "missing-adb"), settle_delay=0)

        code = await run_relay(settings)

        assert code == ExitCode.BRIDGE_SPAWN
