# src/deno_mcp/cli/config_cmds.py

from pathlib import Path

import click
import structlog
from rich.pretty import pretty_repr

from deno_mcp.cli.utils import echo_error, logging_options, setup_logging_from_context
from deno_mcp.config import load_config
from deno_mcp.exceptions import ConfigurationError
from deno_mcp.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.config")


@click.group(name="config")
def config_cli():
    """Commands for inspecting the resolved configuration."""
    pass


@config_cli.command(
    name="show",
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
@click.option(
    "-w",
    "--workspace",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Workspace directory (env var WORKSPACE_FOLDER_PATHS).",
)
@click.option("--deno-path", type=str, default=None, help="Deno executable (env var DENO_MCP_DENO_PATH).")
@click.argument("test_args", nargs=-1, type=click.UNPROCESSED)
@logging_options
@click.pass_context
def show_config(
    ctx: click.Context,
    workspace: Path | None,
    deno_path: str | None,
    test_args: tuple[str, ...],
    **kwargs,
):
    """Resolve, validate, and display the configuration `serve` would use."""
    setup_logging_from_context(
        ctx,
        local_log_level=kwargs.get("log_level"),
        local_log_file=kwargs.get("log_file"),
        local_json_logs=kwargs.get("json_logs"),
        default_log_level="WARNING",
    )
    log.info("Executing 'config show' command")

    try:
        config = load_config(test_args, workspace=workspace, deno_path=deno_path)
    except ConfigurationError as e:
        log.error("Failed to load or validate configuration", error=str(e))
        echo_error(ctx, f"Configuration problem:\n{e}")
        return

    # Echo a rich-formatted string for testability.
    click.echo(pretty_repr(config, expand_all=True))

# 🔼⚙️
