# src/deno_mcp/cli/utils.py

"""
Helpers shared by the click commands: the logging option set, turning those
options into a logging setup, and uniform error exits.
"""

import logging
from typing import Any, NoReturn

import click
import structlog
from attrs import define

from deno_mcp.telemetry.logger import setup_logging as core_setup_logging
from deno_mcp.telemetry.logger.processors import level_number

log = structlog.get_logger("cli.utils")

LOG_LEVEL_CHOICES = click.Choice(list(logging._nameToLevel.keys()), case_sensitive=False)

_LOGGING_OPTIONS = (
    click.option(
        "--json-logs",
        is_flag=True,
        default=None,
        envvar="DENO_MCP_JSON_LOGS",
        help="Render stderr logs as JSON lines.",
    ),
    click.option(
        "--log-file",
        type=click.Path(dir_okay=False, writable=True, resolve_path=True),
        default=None,
        envvar="DENO_MCP_LOG_FILE",
        help="Also write logs to this file (JSON lines).",
    ),
    click.option(
        "-l",
        "--log-level",
        type=LOG_LEVEL_CHOICES,
        default=None,
        envvar="DENO_MCP_LOG_LEVEL",
        help="Set the logging level. Logs always go to stderr.",
    ),
)


@define(frozen=True, slots=True)
class LoggingSettings:
    level: str
    log_file: str | None
    json_logs: bool


def logging_options(f):
    """Decorator to add logging options to any command."""
    for option in _LOGGING_OPTIONS:
        f = option(f)
    return f


def resolve_logging_settings(
    ctx: click.Context,
    local: dict[str, Any],
    default_log_level: str,
) -> LoggingSettings:
    """Command-level options win over the group's, which win over the default."""
    ctx.ensure_object(dict)
    json_logs = local.get("json_logs")
    return LoggingSettings(
        level=local.get("log_level") or ctx.obj.get("LOG_LEVEL") or default_log_level,
        log_file=local.get("log_file") or ctx.obj.get("LOG_FILE"),
        json_logs=json_logs if json_logs is not None else bool(ctx.obj.get("JSON_LOGS", False)),
    )


def setup_logging_from_context(
    ctx: click.Context,
    local_log_level: str | None = None,
    local_log_file: str | None = None,
    local_json_logs: bool | None = None,
    default_log_level: str = "INFO",
    file_only: bool = False,
) -> LoggingSettings:
    """
    Setup logging using context values, allowing local overrides.
    """
    settings = resolve_logging_settings(
        ctx,
        {"log_level": local_log_level, "log_file": local_log_file, "json_logs": local_json_logs},
        default_log_level,
    )
    core_setup_logging(
        level=level_number(settings.level),
        json_logs=settings.json_logs,
        log_file=settings.log_file,
        file_only=file_only,
    )
    log.debug("CLI logging initialized", settings=settings)
    return settings


def echo_error(ctx: click.Context, message: str, exit_code: int = 1) -> NoReturn:
    """Prints `Error: message` to stderr and exits."""
    click.echo(f"Error: {message}", err=True)
    ctx.exit(exit_code)

# ⚙️🛠️
