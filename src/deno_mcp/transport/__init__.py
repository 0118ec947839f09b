#
# src/deno_mcp/transport/__init__.py
#
"""
Process transports: the physical stdio endpoints a channel is framed over.
"""
from .base import BaseTransport, CloseInfo, TransportState
from .client_stdio import StdioClientTransport, get_default_environment
from .server_stdio import StdioServerTransport

__all__ = [
    "BaseTransport",
    "CloseInfo",
    "StdioClientTransport",
    "StdioServerTransport",
    "TransportState",
    "get_default_environment",
]

# 🔼⚙️
