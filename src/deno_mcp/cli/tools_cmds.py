# src/deno_mcp/cli/tools_cmds.py

"""
Client-side commands: start a server command as a child process and talk
to it over its stdio.
"""

import asyncio
import json
import os
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

import click
import structlog
from rich.console import Console
from rich.table import Table

from deno_mcp.cli.utils import echo_error, logging_options, setup_logging_from_context
from deno_mcp.client import McpClient
from deno_mcp.exceptions import DenoMcpError
from deno_mcp.telemetry import StructLogger
from deno_mcp.transport import StdioClientTransport

log: StructLogger = structlog.get_logger("cli.tools")

T = TypeVar("T")

SERVER_COMMAND_SETTINGS = {"ignore_unknown_options": True, "allow_interspersed_args": False}


def split_server_command(server_command: Sequence[str]) -> tuple[str, list[str]]:
    """
    Splits SERVER_COMMAND into executable and arguments.

    Option parsing stops at TOOL_NAME, so the `--` separator can reach us
    verbatim and is dropped here.
    """
    argv = list(server_command)
    if argv and argv[0] == "--":
        argv = argv[1:]
    if not argv:
        raise click.UsageError("Missing the server command after `--`.")
    return argv[0], argv[1:]


async def _with_client(
    server_command: Sequence[str],
    action: Callable[[McpClient], Awaitable[T]],
    timeout: float,
) -> T:
    command, args = split_server_command(server_command)
    transport = StdioClientTransport(command, args, env=dict(os.environ))
    client = McpClient()
    await client.connect(transport, timeout=timeout)
    async with client:
        return await action(client)


def _setup(ctx: click.Context, kwargs: dict[str, Any]) -> None:
    setup_logging_from_context(
        ctx,
        local_log_level=kwargs.get("log_level"),
        local_log_file=kwargs.get("log_file"),
        local_json_logs=kwargs.get("json_logs"),
        default_log_level="WARNING",
    )


@click.group(name="tools")
def tools_cli():
    """Talk to a tool server as a client (put the server command after `--`)."""
    pass


@tools_cli.command(name="list", context_settings=SERVER_COMMAND_SETTINGS)
@click.option("--timeout", type=float, default=30.0, show_default=True, help="Seconds to wait per request.")
@click.argument("server_command", nargs=-1, required=True, type=click.UNPROCESSED)
@logging_options
@click.pass_context
def list_tools(ctx: click.Context, timeout: float, server_command: tuple[str, ...], **kwargs):
    """List the tools SERVER_COMMAND exposes."""
    _setup(ctx, kwargs)
    try:
        tools = asyncio.run(_with_client(server_command, lambda c: c.list_tools(timeout=timeout), timeout))
    except DenoMcpError as e:
        log.error("Listing tools failed", error=str(e))
        echo_error(ctx, str(e))
        return

    table = Table(title="Tools")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Parameters")
    for tool in tools:
        properties = tool.get("inputSchema", {}).get("properties", {})
        table.add_row(tool.get("name", ""), tool.get("annotations", {}).get("title", ""), ", ".join(properties))
    Console().print(table)


@tools_cli.command(name="call", context_settings=SERVER_COMMAND_SETTINGS)
@click.argument("tool_name")
@click.option(
    "-a",
    "--arguments",
    "arguments_json",
    default="{}",
    show_default=True,
    help="Tool arguments as a JSON object.",
)
@click.option("--timeout", type=float, default=600.0, show_default=True, help="Seconds to wait for the call.")
@click.argument("server_command", nargs=-1, required=True, type=click.UNPROCESSED)
@logging_options
@click.pass_context
def call_tool(
    ctx: click.Context,
    tool_name: str,
    arguments_json: str,
    timeout: float,
    server_command: tuple[str, ...],
    **kwargs,
):
    """
    Call TOOL_NAME on SERVER_COMMAND and print its text output.

    Options go before TOOL_NAME, e.g.
    `deno-mcp tools call -a '{"files": ["a_test.ts"]}' test -- deno-mcp serve`.
    Exits with 1 when the tool reports an error.
    """
    _setup(ctx, kwargs)
    try:
        arguments = json.loads(arguments_json)
    except json.JSONDecodeError as e:
        echo_error(ctx, f"--arguments is not valid JSON: {e.msg}", exit_code=2)
        return
    if not isinstance(arguments, dict):
        echo_error(ctx, "--arguments must be a JSON object", exit_code=2)
        return

    try:
        result = asyncio.run(
            _with_client(server_command, lambda c: c.call_tool(tool_name, arguments, timeout=timeout), timeout)
        )
    except DenoMcpError as e:
        log.error("Tool call failed", tool=tool_name, error=str(e))
        echo_error(ctx, str(e))
        return

    click.echo(result.joined_text)
    if result.is_error:
        ctx.exit(1)

# 🔼⚙️
