#
# src/deno_mcp/factory.py
#
"""
Factory for the fully assembled Deno tool server.
"""
import structlog

from deno_mcp.config.models import ServerConfig
from deno_mcp.runner import CommandRunner
from deno_mcp.server.app import McpServer
from deno_mcp.tools.deno import register_deno_tools

log = structlog.get_logger("server.factory")


def create_server(config: ServerConfig, runner: CommandRunner | None = None) -> McpServer:
    """
    Builds an McpServer with the `test` and `coverage` tools registered.

    Callers may add their own tools to the returned server before connecting it.
    """
    server = McpServer(name=config.server_name, version=config.server_version)
    register_deno_tools(server.registry, config, runner)
    log.debug(
        "Server assembled",
        workspace=str(config.workspace),
        deno_path=config.deno_path,
        tools=[tool.name for tool in server.registry.list_tools()],
    )
    return server

# 🔼⚙️
