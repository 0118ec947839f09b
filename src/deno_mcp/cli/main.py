# src/deno_mcp/cli/main.py

"""
`deno-mcp` command group. Global options here are logging only; everything
else belongs to the subcommands.
"""

import click
import structlog

from deno_mcp import __version__
from deno_mcp.cli.config_cmds import config_cli
from deno_mcp.cli.serve_cmds import serve_cli
from deno_mcp.cli.tools_cmds import tools_cli
from deno_mcp.cli.utils import logging_options, setup_logging_from_context
from deno_mcp.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.main")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "-V", "--version", prog_name="deno-mcp")
@logging_options
@click.pass_context
def cli(
    ctx: click.Context,
    log_level: str | None,
    log_file: str | None,
    json_logs: bool | None,
):
    """
    deno-mcp: Deno test and coverage tools over a stdio JSON-RPC channel.

    Point an MCP client (editor or assistant) at `deno-mcp serve`. stdout
    carries the protocol; logs go to stderr.
    Configuration precedence: CLI options > Environment Variables > Defaults.
    """
    ctx.ensure_object(dict)
    ctx.obj.update(LOG_LEVEL=log_level, LOG_FILE=log_file, JSON_LOGS=bool(json_logs))

    settings = setup_logging_from_context(ctx, default_log_level="WARNING")
    log.debug("Main CLI group initialized", settings=settings, subcommand=ctx.invoked_subcommand)


for command in (config_cli, serve_cli, tools_cli):
    cli.add_command(command)

if __name__ == "__main__":
    cli()

# 🖥️⚙️
