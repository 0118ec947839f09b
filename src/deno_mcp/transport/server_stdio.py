#
# src/deno_mcp/transport/server_stdio.py
#
"""
Server side of the stdio transport: the current process's own stdin/stdout.
"""

import asyncio
import sys
from typing import BinaryIO

import structlog

from deno_mcp.exceptions import TransportError, TransportStateError
from deno_mcp.protocol.channel import FramedChannel
from deno_mcp.telemetry import StructLogger, ensure_stderr_logging
from deno_mcp.transport.base import BaseTransport, CloseInfo, TransportState

log: StructLogger = structlog.get_logger("transport.server_stdio")


class StdioServerTransport(BaseTransport):
    """
    Frames messages over this process's stdin (inbound) and stdout (outbound).

    Once started, the transport must be the only writer to stdout; any other
    output has to go to stderr or it will corrupt the framing. If the
    application has not configured structlog, its output is sent to stderr.
    End of stdin closes the transport once the requests already read have
    been answered.
    """

    def __init__(self, stdin: BinaryIO | None = None, stdout: BinaryIO | None = None):
        ensure_stderr_logging()
        super().__init__("stdio-server", log)
        self._stdin = stdin
        self._stdout = stdout
        self._read_transport: asyncio.ReadTransport | None = None
        self._shutdown_task: asyncio.Task[None] | None = None

    async def start(self) -> FramedChannel:
        if self._state is not TransportState.UNSTARTED:
            raise TransportStateError("StdioServerTransport already started")

        ensure_stderr_logging()
        stdin = self._stdin if self._stdin is not None else sys.stdin.buffer
        stdout = self._stdout if self._stdout is not None else sys.stdout.buffer
        loop = asyncio.get_running_loop()

        reader = asyncio.StreamReader()
        try:
            self._read_transport, _ = await loop.connect_read_pipe(
                lambda: asyncio.StreamReaderProtocol(reader), stdin
            )
        except ValueError as e:
            raise TransportError(f"stdin cannot be read as a stream (it must be a pipe or terminal): {e}") from e
        try:
            write_transport, write_protocol = await loop.connect_write_pipe(
                lambda: asyncio.StreamReaderProtocol(asyncio.StreamReader()), stdout
            )
        except ValueError as e:
            self._read_transport.close()
            self._read_transport = None
            raise TransportError(
                f"stdout cannot be written as a stream (it must be a pipe or terminal, not a regular file): {e}"
            ) from e
        writer = asyncio.StreamWriter(write_transport, write_protocol, None, loop)

        self.channel = FramedChannel(reader, writer, name="stdio-server")
        self.channel.on_close(self._on_channel_closed)
        self._set_state(TransportState.RUNNING)
        self.channel.start()
        self._log.info("Stdio server transport connected")
        return self.channel

    async def close(self) -> None:
        await self._shutdown("closed by server")

    def _on_channel_closed(self, reason: str) -> None:
        if self._state is TransportState.RUNNING:
            self._shutdown_task = asyncio.ensure_future(self._shutdown(reason))

    async def _shutdown(self, reason: str) -> None:
        if self._state is TransportState.UNSTARTED:
            self._fire_closed(CloseInfo(reason=reason))
            return
        if self._state is not TransportState.RUNNING:
            await self.wait_closed()
            return

        self._set_state(TransportState.CLOSING)
        try:
            if self.channel is not None:
                await self.channel.close(reason)
        finally:
            if self._read_transport is not None:
                self._read_transport.close()
            self._fire_closed(CloseInfo(reason=reason))

# 🔼⚙️
