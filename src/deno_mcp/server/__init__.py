#
# src/deno_mcp/server/__init__.py
#
"""
Server side of the tool protocol: registry and server object.
"""
from .app import McpServer
from .registry import TextContent, Tool, ToolRegistry, ToolResult, param, structure_params

__all__ = [
    "McpServer",
    "TextContent",
    "Tool",
    "ToolRegistry",
    "ToolResult",
    "param",
    "structure_params",
]

# 🔼⚙️
