#
# src/deno_mcp/transport/client_stdio.py
#
"""
Client side of the stdio transport: a spawned child process's stdin/stdout.
"""

import asyncio
import contextlib
import os
import sys
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

import structlog

from deno_mcp.exceptions import TransportLaunchError, TransportStateError
from deno_mcp.protocol.channel import FramedChannel
from deno_mcp.protocol.framing import FrameBuffer
from deno_mcp.telemetry import StructLogger
from deno_mcp.transport.base import BaseTransport, CloseInfo, TransportState

log: StructLogger = structlog.get_logger("transport.client_stdio")

# Environment variables passed to the child when no full environment is given.
DEFAULT_INHERITED_ENV_VARS = (
    (
        "APPDATA",
        "HOMEDRIVE",
        "HOMEPATH",
        "LOCALAPPDATA",
        "PATH",
        "PROCESSOR_ARCHITECTURE",
        "SYSTEMDRIVE",
        "SYSTEMROOT",
        "TEMP",
        "USERNAME",
        "USERPROFILE",
    )
    if sys.platform == "win32"
    else ("HOME", "LOGNAME", "PATH", "SHELL", "TERM", "USER")
)
DEFAULT_CLOSE_GRACE_PERIOD = 2.0
STDERR_READ_SIZE = 4096


def get_default_environment() -> dict[str, str]:
    """Returns the subset of the current environment that is safe to inherit."""
    env: dict[str, str] = {}
    for key in DEFAULT_INHERITED_ENV_VARS:
        value = os.environ.get(key)
        if value is None or value.startswith("()"):
            # skip exported shell functions
            continue
        env[key] = value
    return env


class StdioClientTransport(BaseTransport):
    """
    Spawns a server process and frames messages over its stdin/stdout.

    The child's stderr is drained continuously into the log (and an optional
    sink) so the child never blocks on a full stderr pipe. If the child exits
    before close() is called, the channel is closed, which fails every
    pending request, and the "closed" event reports the exit status.
    """

    def __init__(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        env: Mapping[str, str] | None = None,
        cwd: str | Path | None = None,
        close_grace_period: float = DEFAULT_CLOSE_GRACE_PERIOD,
        stderr_sink: Callable[[str], None] | None = None,
    ):
        super().__init__(f"stdio-client:{Path(command).name}", log)
        self.command = command
        self.args = list(args)
        self.env = dict(env) if env is not None else None
        self.cwd = cwd
        self.close_grace_period = close_grace_period
        self.stderr_sink = stderr_sink
        self.process: asyncio.subprocess.Process | None = None
        self._stderr_task: asyncio.Task[None] | None = None
        self._watch_task: asyncio.Task[None] | None = None
        self._shutdown_task: asyncio.Task[None] | None = None

    @property
    def pid(self) -> int | None:
        return self.process.pid if self.process else None

    async def start(self) -> FramedChannel:
        if self._state is not TransportState.UNSTARTED:
            raise TransportStateError(f"{self.name} already started")

        env = get_default_environment()
        if self.env:
            env.update(self.env)
        self._log.debug("Spawning server process", command=self.command, args=self.args, cwd=str(self.cwd or "."))
        try:
            self.process = await asyncio.create_subprocess_exec(
                self.command,
                *self.args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
                cwd=self.cwd,
            )
        except OSError as e:
            self._log.error("Failed to spawn server process", command=self.command, error=str(e))
            self._fire_closed(CloseInfo(reason=f"launch failed: {e}"))
            raise TransportLaunchError(self.command, e) from e

        assert self.process.stdin is not None and self.process.stdout is not None
        self._log = self._log.bind(pid=self.process.pid)
        self.channel = FramedChannel(self.process.stdout, self.process.stdin, name=self.name)
        self.channel.on_close(self._on_channel_closed)
        self._set_state(TransportState.RUNNING)
        self.channel.start()
        self._stderr_task = asyncio.create_task(self._drain_stderr(), name=f"{self.name}-stderr")
        self._watch_task = asyncio.create_task(self._watch_process(), name=f"{self.name}-watch")
        self._log.info("Server process started")
        return self.channel

    async def close(self) -> None:
        await self._shutdown("closed by client")

    def _on_channel_closed(self, reason: str) -> None:
        # The child closed its stdout (usually because it is exiting).
        if self._state is TransportState.RUNNING:
            self._shutdown_task = asyncio.ensure_future(self._shutdown(reason))

    async def _watch_process(self) -> None:
        assert self.process is not None
        returncode = await self.process.wait()
        if self._state is TransportState.RUNNING:
            self._log.warning("Server process exited unexpectedly", returncode=returncode)
            await self._shutdown(f"process exited unexpectedly with code {returncode}")

    async def _shutdown(self, reason: str) -> None:
        if self._state is TransportState.UNSTARTED:
            self._fire_closed(CloseInfo(reason=reason))
            return
        if self._state is not TransportState.RUNNING:
            await self.wait_closed()
            return

        self._set_state(TransportState.CLOSING)
        if self.channel is not None:
            await self.channel.close(reason)
        returncode = await self._wait_for_exit()
        if self._stderr_task is not None:
            try:
                await asyncio.wait_for(self._stderr_task, self.close_grace_period)
            except asyncio.TimeoutError:
                self._log.debug("stderr of server process still open, abandoning drain")
        self._fire_closed(CloseInfo.from_returncode(reason, returncode))

    async def _wait_for_exit(self) -> int | None:
        process = self.process
        if process is None:
            return None
        try:
            return await asyncio.wait_for(process.wait(), self.close_grace_period)
        except asyncio.TimeoutError:
            self._log.info("Server process still running after stdin closed, terminating")

        with contextlib.suppress(ProcessLookupError):
            process.terminate()
        try:
            return await asyncio.wait_for(process.wait(), self.close_grace_period)
        except asyncio.TimeoutError:
            self._log.warning("Server process ignored SIGTERM, killing")

        with contextlib.suppress(ProcessLookupError):
            process.kill()
        return await process.wait()

    async def _drain_stderr(self) -> None:
        assert self.process is not None and self.process.stderr is not None
        stream = self.process.stderr
        lines = FrameBuffer()
        try:
            while True:
                chunk = await stream.read(STDERR_READ_SIZE)
                if not chunk:
                    break
                for line in lines.feed(chunk):
                    self._emit_stderr(line)
        except OSError as e:
            self._log.debug("Reading server stderr failed", error=str(e))
        trailing = lines.flush()
        if trailing is not None:
            self._emit_stderr(trailing)

    def _emit_stderr(self, raw: bytes) -> None:
        text = raw.decode("utf-8", errors="replace")
        self._log.debug("Server stderr", line=text)
        if self.stderr_sink is not None:
            try:
                self.stderr_sink(text)
            except Exception:
                self._log.exception("stderr sink raised")

# 🔼⚙️
