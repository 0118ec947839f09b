#
# src/deno_mcp/client.py
#
"""
Client side of the tool protocol.
"""
from typing import Any

import structlog

from deno_mcp.exceptions import ProtocolError, TransportStateError
from deno_mcp.protocol.dispatcher import Dispatcher, Params
from deno_mcp.protocol.messages import LATEST_PROTOCOL_VERSION, SUPPORTED_PROTOCOL_VERSIONS
from deno_mcp.server.registry import ToolResult
from deno_mcp.telemetry import StructLogger
from deno_mcp.transport.base import BaseTransport

log: StructLogger = structlog.get_logger("client")


class McpClient:
    """
    Talks to a tool server over a transport.

    connect() starts the transport and performs the initialize handshake.
    The client can be used as an async context manager once a transport has
    been attached with connect().
    """

    def __init__(self, name: str = "deno-mcp-client", version: str = "0.1.0"):
        self.name = name
        self.version = version
        self.transport: BaseTransport | None = None
        self.dispatcher: Dispatcher | None = None
        self.server_info: dict[str, Any] | None = None
        self.server_capabilities: dict[str, Any] = {}
        self.protocol_version: str | None = None

    async def connect(self, transport: BaseTransport, *, timeout: float | None = None) -> dict[str, Any]:
        """
        Starts the transport and runs the handshake.

        Returns the server's initialize result. On any failure the transport
        is closed again before the error propagates.
        """
        if self.dispatcher is not None:
            raise TransportStateError("Client is already connected")

        channel = await transport.start()
        self.transport = transport
        self.dispatcher = Dispatcher(channel, name=f"client:{self.name}")
        try:
            result = await self.dispatcher.request(
                "initialize",
                {
                    "protocolVersion": LATEST_PROTOCOL_VERSION,
                    "capabilities": {},
                    "clientInfo": {"name": self.name, "version": self.version},
                },
                timeout=timeout,
            )
            if not isinstance(result, dict) or result.get("protocolVersion") not in SUPPORTED_PROTOCOL_VERSIONS:
                version = result.get("protocolVersion") if isinstance(result, dict) else None
                raise ProtocolError(f"Server's protocol version is not supported: {version}")
            self.protocol_version = result["protocolVersion"]
            self.server_info = result.get("serverInfo")
            self.server_capabilities = result.get("capabilities") or {}
            await self.dispatcher.notify("notifications/initialized")
        except BaseException:
            await transport.close()
            raise

        log.info("Connected to server", server=self.server_info, protocol_version=self.protocol_version)
        return result

    async def request(self, method: str, params: Params = None, *, timeout: float | None = None) -> Any:
        if self.dispatcher is None:
            raise TransportStateError("Client is not connected")
        return await self.dispatcher.request(method, params, timeout=timeout)

    async def ping(self, *, timeout: float | None = None) -> None:
        await self.request("ping", timeout=timeout)

    async def list_tools(self, *, timeout: float | None = None) -> list[dict[str, Any]]:
        result = await self.request("tools/list", timeout=timeout)
        return list(result.get("tools", []))

    async def call_tool(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> ToolResult:
        result = await self.request("tools/call", {"name": name, "arguments": arguments or {}}, timeout=timeout)
        return ToolResult.from_dict(result)

    async def close(self) -> None:
        if self.transport is not None:
            await self.transport.close()

    async def __aenter__(self) -> "McpClient":
        if self.dispatcher is None:
            raise TransportStateError("Call connect() before entering the client context")
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

# 🔼⚙️
