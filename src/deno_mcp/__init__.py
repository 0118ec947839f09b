#
# src/deno_mcp/__init__.py
#
"""
deno-mcp: exposes `deno test` and `deno coverage` as tools over a
line-delimited JSON-RPC channel on stdio.
"""
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("deno-mcp")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from deno_mcp.client import McpClient  # noqa: E402
from deno_mcp.factory import create_server  # noqa: E402
from deno_mcp.server import McpServer, ToolRegistry, ToolResult  # noqa: E402
from deno_mcp.transport import StdioClientTransport, StdioServerTransport  # noqa: E402

__all__ = [
    "McpClient",
    "McpServer",
    "StdioClientTransport",
    "StdioServerTransport",
    "ToolRegistry",
    "ToolResult",
    "__version__",
    "create_server",
]

# 🔼⚙️
