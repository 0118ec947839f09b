import asyncio
import json
import logging
import stat
import sys
from collections.abc import Callable
from pathlib import Path

import pytest
import structlog

from deno_mcp.config import ServerConfig
from deno_mcp.protocol.channel import FramedChannel
from deno_mcp.runner import CommandResult
from deno_mcp.transport.base import BaseTransport, CloseInfo, TransportState

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class LoopbackWriter:
    """
    In-memory stand-in for an asyncio StreamWriter.

    Everything written is recorded and, when a target reader is given, fed
    into it, so two channels can be wired back to back.
    """

    def __init__(self, target: asyncio.StreamReader | None = None):
        self.target = target
        self.written = bytearray()
        self.fail_with: Exception | None = None
        self._closing = False

    def write(self, data: bytes) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.written.extend(data)
        if self.target is not None:
            self.target.feed_data(data)

    async def drain(self) -> None:
        pass

    def close(self) -> None:
        if self._closing:
            return
        self._closing = True
        if self.target is not None:
            self.target.feed_eof()

    def is_closing(self) -> bool:
        return self._closing

    async def wait_closed(self) -> None:
        pass

    def frames(self) -> list[dict]:
        return [json.loads(line) for line in bytes(self.written).splitlines() if line.strip()]


def make_channel_pair() -> tuple[FramedChannel, FramedChannel]:
    """Two unstarted channels connected back to back. Needs a running loop."""
    reader_a = asyncio.StreamReader()
    reader_b = asyncio.StreamReader()
    channel_a = FramedChannel(reader_a, LoopbackWriter(reader_b), name="a")
    channel_b = FramedChannel(reader_b, LoopbackWriter(reader_a), name="b")
    return channel_a, channel_b


class MemoryTransport(BaseTransport):
    """A transport over an already built, unstarted channel."""

    def __init__(self, channel: FramedChannel, name: str = "memory"):
        super().__init__(name)
        self._pending_channel = channel

    async def start(self) -> FramedChannel:
        self.channel = self._pending_channel
        self.channel.on_close(self._on_channel_closed)
        self._set_state(TransportState.RUNNING)
        self.channel.start()
        return self.channel

    async def close(self) -> None:
        if self._state is TransportState.RUNNING:
            self._set_state(TransportState.CLOSING)
            await self._pending_channel.close("closed by test")
            self._fire_closed(CloseInfo(reason="closed by test"))
        elif self._state is TransportState.UNSTARTED:
            self._fire_closed(CloseInfo(reason="closed by test"))

    def _on_channel_closed(self, reason: str) -> None:
        if self._state is TransportState.RUNNING:
            self._set_state(TransportState.CLOSING)
            self._fire_closed(CloseInfo(reason=reason))


class FakeRunner:
    """Records commands instead of running them."""

    def __init__(self, result: CommandResult | None = None, error: Exception | None = None):
        self.result = result or CommandResult(exit_code=0, stdout="ok\n", stderr="")
        self.error = error
        self.calls: list[dict] = []

    async def run(self, command, *, cwd, env=None) -> CommandResult:
        self.calls.append({"command": list(command), "cwd": cwd, "env": env})
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def channel_pair_factory() -> Callable[[], tuple[FramedChannel, FramedChannel]]:
    return make_channel_pair


@pytest.fixture
def memory_transports() -> Callable[[], tuple[MemoryTransport, MemoryTransport]]:
    """Factory for a connected (client, server) pair of in-memory transports."""

    def factory() -> tuple[MemoryTransport, MemoryTransport]:
        client_channel, server_channel = make_channel_pair()
        return MemoryTransport(client_channel, "memory-client"), MemoryTransport(server_channel, "memory-server")

    return factory


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    path = tmp_path / "workspace"
    path.mkdir()
    return path


@pytest.fixture
def server_config(workspace: Path) -> ServerConfig:
    return ServerConfig(deno_path="deno", workspace=workspace, test_args=("--allow-read",))


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def make_fake_deno(tmp_path: Path) -> Callable[..., Path]:
    """
    Factory writing an executable Python script that stands in for `deno`.

    The script prints its arguments on stdout, writes `stderr` to stderr and
    exits with `exit_code`.
    """
    if sys.platform == "win32":
        pytest.skip("shebang scripts are not executable on Windows")

    def factory(exit_code: int = 0, stdout: str = "", stderr: str = "", name: str = "deno") -> Path:
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir(exist_ok=True)
        script = bin_dir / name
        script.write_text(
            f"#!{sys.executable}\n"
            "import sys\n"
            f"sys.stdout.write({stdout!r} or ' '.join(sys.argv[1:]) + '\\n')\n"
            f"sys.stderr.write({stderr!r})\n"
            f"sys.exit({exit_code})\n"
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return factory


@pytest.fixture
def loopback_writer() -> type[LoopbackWriter]:
    return LoopbackWriter


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture(autouse=True)
def _reset_logging():
    """
    CLI tests point log handlers at CliRunner streams that close after invoke,
    and a stdio server transport may configure structlog for the process.
    """
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
