#
# src/deno_mcp/server/app.py
#
"""
The MCP server object: a tool registry bound to a transport.
"""
from collections.abc import Callable, Mapping
from typing import Any

import structlog

from deno_mcp.exceptions import InvalidParamsError, TransportStateError
from deno_mcp.protocol.dispatcher import Dispatcher, Params, RequestHandler
from deno_mcp.protocol.messages import LATEST_PROTOCOL_VERSION, SUPPORTED_PROTOCOL_VERSIONS
from deno_mcp.server.registry import ToolHandler, ToolRegistry
from deno_mcp.telemetry import StructLogger
from deno_mcp.transport.base import BaseTransport, CloseInfo

log: StructLogger = structlog.get_logger("server.app")


class McpServer:
    """
    Serves tools over a transport.

    Construct it, register tools (or extra raw request handlers), then call
    connect() with a transport. One server instance serves one connection.
    """

    def __init__(self, name: str, version: str, *, registry: ToolRegistry | None = None):
        self.name = name
        self.version = version
        self.registry = registry if registry is not None else ToolRegistry()
        self.transport: BaseTransport | None = None
        self.dispatcher: Dispatcher | None = None
        self.client_info: Mapping[str, Any] | None = None
        self.protocol_version: str | None = None
        self.initialized = False
        self._extra_handlers: dict[str, RequestHandler] = {}

    @property
    def _log(self) -> StructLogger:
        # bound per use: a stdio transport may redirect logging after construction
        return log.bind(server=self.name)

    def tool(
        self,
        name: str,
        params_type: type,
        *,
        title: str | None = None,
        description: str | None = None,
    ) -> Callable[[ToolHandler], ToolHandler]:
        return self.registry.tool(name, params_type, title=title, description=description)

    def request_handler(self, method: str) -> Callable[[RequestHandler], RequestHandler]:
        """Registers a handler for a raw JSON-RPC method outside the tool layer."""
        def decorator(handler: RequestHandler) -> RequestHandler:
            self._extra_handlers[method] = handler
            if self.dispatcher is not None:
                self.dispatcher.on_request(method, handler)
            return handler
        return decorator

    async def connect(self, transport: BaseTransport) -> Dispatcher:
        """Starts the transport and begins answering requests on it."""
        if self.dispatcher is not None:
            raise TransportStateError(f"Server '{self.name}' is already connected")

        channel = await transport.start()
        dispatcher = Dispatcher(channel, name=f"server:{self.name}")
        dispatcher.on_request("initialize", self._handle_initialize)
        dispatcher.on_request("ping", self._handle_ping)
        dispatcher.on_request("tools/list", self._handle_list_tools)
        dispatcher.on_request("tools/call", self._handle_call_tool)
        dispatcher.on_notification("notifications/initialized", self._handle_initialized)
        for method, handler in self._extra_handlers.items():
            dispatcher.on_request(method, handler)
        channel.on_error(lambda e: self._log.warning("Channel error", error=str(e)))

        self.transport = transport
        self.dispatcher = dispatcher
        self._log.info("Server connected", tools=[t.name for t in self.registry.list_tools()])
        return dispatcher

    async def serve(self, transport: BaseTransport) -> CloseInfo:
        """Connects and runs until the transport closes."""
        await self.connect(transport)
        return await transport.wait_closed()

    async def close(self) -> None:
        if self.transport is not None:
            await self.transport.close()

    async def _handle_initialize(self, params: Params) -> dict[str, Any]:
        if not isinstance(params, Mapping):
            raise InvalidParamsError("initialize expects an object")
        requested = params.get("protocolVersion")
        self.protocol_version = requested if requested in SUPPORTED_PROTOCOL_VERSIONS else LATEST_PROTOCOL_VERSION
        self.client_info = params.get("clientInfo")
        self._log.info(
            "Client initializing",
            client=self.client_info,
            requested_version=requested,
            protocol_version=self.protocol_version,
        )
        return {
            "protocolVersion": self.protocol_version,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {"name": self.name, "version": self.version},
        }

    def _handle_initialized(self, params: Params) -> None:
        self.initialized = True
        self._log.debug("Client finished initialization")

    def _handle_ping(self, params: Params) -> dict[str, Any]:
        return {}

    def _handle_list_tools(self, params: Params) -> dict[str, Any]:
        return {"tools": [tool.to_dict() for tool in self.registry.list_tools()]}

    async def _handle_call_tool(self, params: Params) -> dict[str, Any]:
        if not isinstance(params, Mapping) or not isinstance(params.get("name"), str):
            raise InvalidParamsError("tools/call expects an object with a 'name'")
        result = await self.registry.call(params["name"], params.get("arguments"))
        return result.to_dict()

# 🔼⚙️
