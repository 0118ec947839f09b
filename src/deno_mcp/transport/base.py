#
# src/deno_mcp/transport/base.py
#
"""
Lifecycle shared by the stdio transports.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum

import structlog
from attrs import define, field

from deno_mcp.exceptions import TransportStateError
from deno_mcp.protocol.channel import FramedChannel
from deno_mcp.telemetry import StructLogger

log: StructLogger = structlog.get_logger("transport.base")


class TransportState(Enum):
    """Lifecycle states. Transitions only ever move forward."""

    UNSTARTED = 1
    RUNNING = 2
    CLOSING = 3
    CLOSED = 4


@define(frozen=True, slots=True)
class CloseInfo:
    """What is known about why a transport closed."""

    reason: str
    exit_code: int | None = field(default=None)
    signal: int | None = field(default=None)

    @classmethod
    def from_returncode(cls, reason: str, returncode: int | None) -> "CloseInfo":
        if returncode is None:
            return cls(reason=reason)
        if returncode < 0:
            return cls(reason=reason, signal=-returncode)
        return cls(reason=reason, exit_code=returncode)


CloseHandler = Callable[[CloseInfo], None]


class BaseTransport(ABC):
    """
    Owns a pair of physical streams and the channel framed over them.

    Subclasses implement start() and close(). The "closed" event is fired
    through _fire_closed(), which guarantees handlers run exactly once.
    """

    def __init__(self, name: str, logger: StructLogger = log):
        self.name = name
        self.channel: FramedChannel | None = None
        self.close_info: CloseInfo | None = None
        self._state = TransportState.UNSTARTED
        self._close_handlers: list[CloseHandler] = []
        self._closed_event = asyncio.Event()
        self._log = logger.bind(transport=name)

    @property
    def state(self) -> TransportState:
        return self._state

    def on_close(self, handler: CloseHandler) -> None:
        self._close_handlers.append(handler)

    async def wait_closed(self) -> CloseInfo:
        await self._closed_event.wait()
        assert self.close_info is not None
        return self.close_info

    @abstractmethod
    async def start(self) -> FramedChannel:
        """Opens the streams and returns the running channel."""

    @abstractmethod
    async def close(self) -> None:
        """Shuts the transport down. Safe to call more than once."""

    def _set_state(self, new_state: TransportState) -> None:
        if new_state.value <= self._state.value:
            raise TransportStateError(
                f"Transport '{self.name}' cannot move from {self._state.name} to {new_state.name}"
            )
        self._log.debug("Transport state changed", old_state=self._state.name, new_state=new_state.name)
        self._state = new_state

    def _fire_closed(self, info: CloseInfo) -> None:
        if self.close_info is not None:
            return
        if self._state is not TransportState.CLOSED:
            self._set_state(TransportState.CLOSED)
        self.close_info = info
        self._log.info(
            "Transport closed",
            reason=info.reason,
            exit_code=info.exit_code,
            signal=info.signal,
        )
        for handler in list(self._close_handlers):
            try:
                handler(info)
            except Exception:
                self._log.exception("Transport close handler raised")
        self._closed_event.set()

# 🔼⚙️
