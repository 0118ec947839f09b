#
# src/deno_mcp/protocol/dispatcher.py
#
"""
Request/response correlation and inbound message routing.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from deno_mcp.exceptions import (
    INTERNAL_ERROR,
    ChannelClosedError,
    MethodNotFoundError,
    RequestTimeoutError,
    RpcError,
)
from deno_mcp.protocol.channel import FramedChannel
from deno_mcp.protocol.messages import (
    ErrorObject,
    Message,
    Notification,
    Request,
    RequestId,
    Response,
)
from deno_mcp.telemetry import StructLogger

log: StructLogger = structlog.get_logger("protocol.dispatcher")

Params = dict[str, Any] | list[Any] | None
RequestHandler = Callable[[Params], Awaitable[Any] | Any]
NotificationHandler = Callable[[Params], Awaitable[None] | None]


class Dispatcher:
    """
    Correlates outgoing requests with their responses and routes inbound
    requests and notifications to registered handlers.

    Request ids are integers allocated from a per-instance counter and never
    reused, so a response that arrives after its request timed out cannot be
    matched to a later request. All state is owned by the event loop thread.

    When the peer ends its stream, requests already received are still
    answered before the channel closes. A local close() or a failed write
    cancels them instead.
    """

    def __init__(self, channel: FramedChannel, *, name: str | None = None):
        self._channel = channel
        self._pending: dict[RequestId, asyncio.Future[Any]] = {}
        self._next_id = 0
        self._request_handlers: dict[str, RequestHandler] = {}
        self._notification_handlers: dict[str, list[NotificationHandler]] = {}
        self._inflight: set[asyncio.Task[Any]] = set()
        self._closed_reason: str | None = None
        self._log = log.bind(dispatcher=name or channel.name)

        channel.on_message(self._handle_message)
        channel.on_end_of_input(self._finish_inflight)
        channel.on_close(self._handle_close)
        if channel.is_closed:
            self._handle_close(channel.close_reason or "channel closed")

    @property
    def pending_ids(self) -> tuple[RequestId, ...]:
        return tuple(self._pending)

    @property
    def is_closed(self) -> bool:
        return self._closed_reason is not None

    def on_request(self, method: str, handler: RequestHandler) -> RequestHandler:
        """Registers the handler serving inbound requests for `method`."""
        self._request_handlers[method] = handler
        return handler

    def on_notification(self, method: str, handler: NotificationHandler) -> NotificationHandler:
        self._notification_handlers.setdefault(method, []).append(handler)
        return handler

    async def request(self, method: str, params: Params = None, *, timeout: float | None = None) -> Any:
        """
        Sends a request and waits for its response.

        Returns the response's result. Raises RpcError if the peer answered
        with an error, ChannelClosedError if the channel closed first, and
        RequestTimeoutError if `timeout` seconds passed without an answer.
        """
        if self._closed_reason is not None:
            raise ChannelClosedError(self._closed_reason)

        self._next_id += 1
        request_id = self._next_id
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        req_log = self._log.bind(method=method, request_id=request_id)
        req_log.debug("Sending request")

        try:
            await self._channel.send(Request(id=request_id, method=method, params=params))
        except BaseException:
            self._pending.pop(request_id, None)
            if future.done() and not future.cancelled():
                future.exception()
            else:
                future.cancel()
            raise

        try:
            if timeout is None:
                return await future
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            req_log.warning("Request timed out, retiring id", timeout=timeout)
            raise RequestTimeoutError(method, timeout) from None
        finally:
            self._pending.pop(request_id, None)

    async def notify(self, method: str, params: Params = None) -> None:
        if self._closed_reason is not None:
            raise ChannelClosedError(self._closed_reason)
        self._log.debug("Sending notification", method=method)
        await self._channel.send(Notification(method=method, params=params))

    async def close(self, reason: str = "closed locally") -> None:
        await self._channel.close(reason)

    # --- inbound ---
    def _handle_message(self, message: Message) -> None:
        if isinstance(message, Response):
            self._resolve(message)
        elif isinstance(message, Request):
            if self._closed_reason is not None:
                return
            self._spawn(self._serve_request(message))
        else:
            self._handle_notification(message)

    def _resolve(self, response: Response) -> None:
        if response.id is None:
            self._log.warning(
                "Received response without id",
                error=response.error.message if response.error else None,
            )
            return
        future = self._pending.pop(response.id, None)
        if future is None:
            self._log.debug("Discarding response for unknown or retired request id", request_id=response.id)
            return
        if future.done():
            return
        if response.error is not None:
            future.set_exception(response.error.to_exception())
        else:
            future.set_result(response.result)

    def _handle_notification(self, notification: Notification) -> None:
        handlers = self._notification_handlers.get(notification.method)
        if not handlers:
            self._log.debug("No handler for notification", method=notification.method)
            return
        for handler in list(handlers):
            try:
                outcome = handler(notification.params)
            except Exception:
                self._log.exception("Notification handler raised", method=notification.method)
                continue
            if inspect.isawaitable(outcome):
                self._spawn(self._await_notification(notification.method, outcome))

    async def _await_notification(self, method: str, outcome: Awaitable[None]) -> None:
        try:
            await outcome
        except Exception:
            self._log.exception("Notification handler raised", method=method)

    async def _serve_request(self, request: Request) -> None:
        req_log = self._log.bind(method=request.method, request_id=request.id)
        handler = self._request_handlers.get(request.method)
        try:
            if handler is None:
                raise MethodNotFoundError(request.method)
            result = handler(request.params)
            if inspect.isawaitable(result):
                result = await result
            response = Response(id=request.id, result=result)
        except asyncio.CancelledError:
            req_log.debug("Request handler cancelled")
            raise
        except RpcError as e:
            req_log.info("Request failed", code=e.code, error=e.message)
            response = Response(id=request.id, error=ErrorObject.from_exception(e))
        except Exception as e:
            req_log.exception("Request handler raised")
            response = Response(
                id=request.id,
                error=ErrorObject(code=INTERNAL_ERROR, message=str(e) or type(e).__name__),
            )

        try:
            await self._send_response(response)
        except (TypeError, ValueError) as e:
            req_log.error("Handler result is not JSON serializable", error=str(e))
            await self._send_response(
                Response(
                    id=request.id,
                    error=ErrorObject(code=INTERNAL_ERROR, message=f"Result is not serializable: {e}"),
                )
            )

    async def _send_response(self, response: Response) -> None:
        try:
            await self._channel.send(response)
        except ChannelClosedError:
            self._log.debug("Channel closed before response could be sent", request_id=response.id)

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _finish_inflight(self) -> None:
        while self._inflight:
            self._log.debug("Input ended, finishing in-flight handlers", count=len(self._inflight))
            await asyncio.wait(list(self._inflight))

    def _handle_close(self, reason: str) -> None:
        if self._closed_reason is not None:
            return
        self._closed_reason = reason
        pending = list(self._pending.values())
        self._pending.clear()
        for future in pending:
            if not future.done():
                future.set_exception(ChannelClosedError(reason))
        for task in list(self._inflight):
            task.cancel()
        self._log.debug(
            "Dispatcher closed",
            reason=reason,
            rejected_requests=len(pending),
            cancelled_handlers=len(self._inflight),
        )

# 🔼⚙️
