# src/deno_mcp/cli/serve_cmds.py

import asyncio
import contextlib
import signal
import sys
from pathlib import Path

import click
import structlog

from deno_mcp.cli.utils import echo_error, logging_options, setup_logging_from_context
from deno_mcp.config import load_config
from deno_mcp.exceptions import ConfigurationError, TransportError
from deno_mcp.factory import create_server
from deno_mcp.server import McpServer
from deno_mcp.telemetry import StructLogger
from deno_mcp.transport import CloseInfo, StdioServerTransport

log: StructLogger = structlog.get_logger("cli.serve")


async def _serve(server: McpServer, transport: StdioServerTransport) -> CloseInfo:
    loop = asyncio.get_running_loop()

    def _request_shutdown(sig: int) -> None:
        log.warning("Received shutdown signal", signal=signal.Signals(sig).name)
        asyncio.ensure_future(server.close())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _request_shutdown, sig)
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no signal handler support
            log.debug("Signal handlers unavailable", signal=signal.Signals(sig).name)

    # stdout belongs to the protocol; stray prints go to stderr
    with contextlib.redirect_stdout(sys.stderr):
        return await server.serve(transport)


@click.command(
    name="serve",
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
@click.option(
    "-w",
    "--workspace",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Directory Deno commands run in (env var WORKSPACE_FOLDER_PATHS, default: current directory).",
)
@click.option(
    "--deno-path",
    type=str,
    default=None,
    help="Deno executable to run (env var DENO_MCP_DENO_PATH, default: `deno` on PATH).",
)
@click.argument("test_args", nargs=-1, type=click.UNPROCESSED)
@logging_options
@click.pass_context
def serve_cli(
    ctx: click.Context,
    workspace: Path | None,
    deno_path: str | None,
    test_args: tuple[str, ...],
    **kwargs,
):
    """
    Serve the `test` and `coverage` tools over stdio.

    Any TEST_ARGS are appended to every `deno test` run, e.g.
    `deno-mcp serve --allow-read --allow-env`.
    """
    setup_logging_from_context(
        ctx,
        local_log_level=kwargs.get("log_level"),
        local_log_file=kwargs.get("log_file"),
        local_json_logs=kwargs.get("json_logs"),
        default_log_level="WARNING",
    )

    try:
        config = load_config(test_args, workspace=workspace, deno_path=deno_path)
    except ConfigurationError as e:
        log.error("Failed to load configuration", error=str(e))
        echo_error(ctx, str(e))
        return

    server = create_server(config.server)
    # Bind the real stdout before it is redirected.
    transport = StdioServerTransport(stdin=sys.stdin.buffer, stdout=sys.stdout.buffer)
    log.info(
        "Starting server",
        workspace=str(config.server.workspace),
        deno_path=config.server.deno_path,
        test_args=list(config.server.test_args),
    )

    try:
        info = asyncio.run(_serve(server, transport))
    except KeyboardInterrupt:
        log.warning("Interrupted")
        ctx.exit(130)
    except TransportError as e:
        log.error("Server transport failed", error=str(e))
        echo_error(ctx, str(e))
        return
    log.info("Server stopped", reason=info.reason)

# 🔼⚙️
