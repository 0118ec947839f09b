#
# src/deno_mcp/protocol/channel.py
#
"""
A message channel over a pair of asyncio byte streams.
"""

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from typing import Protocol

import structlog

from deno_mcp.exceptions import ChannelClosedError, MessageDecodeError, TransportError, TransportStateError
from deno_mcp.protocol.framing import FrameBuffer
from deno_mcp.protocol.messages import Message, decode_message, encode_message
from deno_mcp.telemetry import StructLogger

log: StructLogger = structlog.get_logger("protocol.channel")

DEFAULT_READ_SIZE = 64 * 1024

MessageHandler = Callable[[Message], None]
ErrorHandler = Callable[[Exception], None]
CloseHandler = Callable[[str], None]
EndOfInputHandler = Callable[[], Awaitable[None]]


class ByteReader(Protocol):
    async def read(self, n: int = -1) -> bytes: ...


class ByteWriter(Protocol):
    def write(self, data: bytes) -> None: ...

    async def drain(self) -> None: ...

    def close(self) -> None: ...

    def is_closing(self) -> bool: ...

    async def wait_closed(self) -> None: ...


class FramedChannel:
    """
    Speaks newline-delimited JSON-RPC messages over a reader/writer pair.

    Inbound frames are decoded by a background read task and handed to the
    message handlers in the order their delimiters arrived. Frames that fail
    to decode go to the error handlers and reading continues. When the
    stream ends, an unterminated trailing fragment is delivered as a final
    message and the end-of-input handlers are awaited while the write side is
    still open, so replies to what was already received can go out. Then the
    close handlers run exactly once.
    """

    def __init__(
        self,
        reader: ByteReader,
        writer: ByteWriter,
        *,
        name: str = "channel",
        read_size: int = DEFAULT_READ_SIZE,
    ):
        self.name = name
        self._reader = reader
        self._writer = writer
        self._read_size = read_size
        self._buffer = FrameBuffer()
        self._write_lock = asyncio.Lock()
        self._message_handlers: list[MessageHandler] = []
        self._error_handlers: list[ErrorHandler] = []
        self._close_handlers: list[CloseHandler] = []
        self._end_of_input_handlers: list[EndOfInputHandler] = []
        self._read_task: asyncio.Task[None] | None = None
        self._closed = False
        self.close_reason: str | None = None
        self._log = log.bind(channel=name)

    @property
    def is_closed(self) -> bool:
        return self._closed

    def on_message(self, handler: MessageHandler) -> None:
        self._message_handlers.append(handler)

    def on_error(self, handler: ErrorHandler) -> None:
        self._error_handlers.append(handler)

    def on_close(self, handler: CloseHandler) -> None:
        self._close_handlers.append(handler)

    def on_end_of_input(self, handler: EndOfInputHandler) -> None:
        """Registers a coroutine function awaited after the peer ends its stream, before closing."""
        self._end_of_input_handlers.append(handler)

    def start(self) -> None:
        """Starts the background read task."""
        if self._read_task is not None:
            raise TransportStateError(f"Channel '{self.name}' is already reading")
        if self._closed:
            raise ChannelClosedError(self.close_reason or "channel closed")
        self._read_task = asyncio.create_task(self._read_loop(), name=f"{self.name}-reader")
        self._log.debug("Channel read loop started")

    async def send(self, message: Message) -> None:
        """Writes one message as a single frame."""
        data = encode_message(message)
        async with self._write_lock:
            if self._closed:
                raise ChannelClosedError(self.close_reason or "channel closed")
            try:
                self._writer.write(data)
                await self._writer.drain()
            except OSError as e:
                reason = f"write failed: {e}"
                self._log.warning("Channel write failed, closing", error=str(e))
                self._report_error(TransportError(reason))
                await self.close(reason)
                raise ChannelClosedError(reason) from e
        self._log.debug("Frame sent", kind=type(message).__name__, size=len(data))

    async def close(self, reason: str = "closed locally") -> None:
        """Stops reading, closes the write side and fires the close handlers once."""
        self._mark_closed(reason)
        task = self._read_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await self._close_writer()

    async def _read_loop(self) -> None:
        reason = "end of stream"
        try:
            while True:
                chunk = await self._reader.read(self._read_size)
                if not chunk:
                    break
                for frame in self._buffer.feed(chunk):
                    self._deliver(frame)
            trailing = self._buffer.flush()
            if trailing is not None:
                self._log.debug("Delivering unterminated trailing frame", size=len(trailing))
                self._deliver(trailing)
            await self._finish_input()
        except OSError as e:
            reason = f"read failed: {e}"
            self._log.warning("Channel read failed", error=str(e))
            self._report_error(TransportError(reason))
        self._mark_closed(reason)
        await self._close_writer()

    def _deliver(self, frame: bytes) -> None:
        try:
            message = decode_message(frame)
        except MessageDecodeError as e:
            self._log.warning("Discarding undecodable frame", error=str(e), size=len(frame))
            self._report_error(e)
            return
        for handler in list(self._message_handlers):
            try:
                handler(message)
            except Exception as e:
                self._log.exception("Message handler raised")
                self._report_error(e)

    async def _finish_input(self) -> None:
        for handler in list(self._end_of_input_handlers):
            try:
                await handler()
            except Exception:
                self._log.exception("End-of-input handler raised")

    def _report_error(self, error: Exception) -> None:
        for handler in list(self._error_handlers):
            try:
                handler(error)
            except Exception:
                self._log.exception("Error handler raised")

    def _mark_closed(self, reason: str) -> None:
        if self._closed:
            return
        self._closed = True
        self.close_reason = reason
        self._buffer.clear()
        self._log.debug("Channel closed", reason=reason)
        for handler in list(self._close_handlers):
            try:
                handler(reason)
            except Exception:
                self._log.exception("Close handler raised")

    async def _close_writer(self) -> None:
        if self._writer.is_closing():
            return
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError as e:
            # Peer already gone; nothing left to flush.
            self._log.debug("Error while closing writer", error=str(e))

# 🔼⚙️
