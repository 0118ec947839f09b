# src/deno_mcp/telemetry/logger/base.py

"""
structlog configuration for deno-mcp.

stdout is the protocol channel whenever deno-mcp runs as a stdio server, so
console logs are only ever written to stderr (or an explicitly given stream).
"""

import logging
import sys
from typing import TextIO

import structlog
from structlog.typing import FilteringBoundLogger

from deno_mcp.telemetry.logger.processors import (
    add_emoji_processor,
    remove_extra_keys_processor,
)

BASE_LOGGER_NAME = "deno_mcp"

# Third-party loggers that are chatty at DEBUG without saying anything useful here.
QUIET_LOGGERS = ("asyncio",)

SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    add_emoji_processor,
    remove_extra_keys_processor,
    structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
]


def _console_formatter(json_logs: bool, stream: TextIO) -> structlog.stdlib.ProcessorFormatter:
    if json_logs:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        # An MCP host captures stderr into a log file; colors only help on a terminal.
        is_tty = getattr(stream, "isatty", lambda: False)()
        renderer = structlog.dev.ConsoleRenderer(colors=is_tty)
    return structlog.stdlib.ProcessorFormatter(processor=renderer)


def _file_handler(log_file: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=structlog.processors.JSONRenderer(sort_keys=True))
    )
    handler.setLevel(level)
    return handler


def _reset_root_logger(level: int) -> logging.Logger:
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        handler.close()
        root_logger.removeHandler(handler)
    root_logger.setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))
    return root_logger


def setup_logging(
    level: int = logging.INFO,
    json_logs: bool = False,
    log_file: str | None = None,
    file_only: bool = False,
    stream: TextIO | None = None,
) -> None:
    """
    Configures structlog and the stdlib root logger for the whole process.

    Args:
        level: Minimum level for every handler.
        json_logs: Render console lines as JSON instead of key=value text.
        log_file: Also write JSON lines to this file.
        file_only: Skip the console handler (only honoured with a log_file).
        stream: Console stream, stderr by default. Never pass stdout when
            serving over stdio.
    """
    structlog.configure(
        processors=SHARED_PROCESSORS,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = _reset_root_logger(level)
    slog = structlog.get_logger(BASE_LOGGER_NAME)

    console_enabled = not (file_only and log_file)
    if console_enabled:
        console_stream = stream or sys.stderr
        console_handler = logging.StreamHandler(console_stream)
        console_handler.setFormatter(_console_formatter(json_logs, console_stream))
        root_logger.addHandler(console_handler)

    if log_file:
        try:
            root_logger.addHandler(_file_handler(log_file, level))
        except OSError as e:
            slog.error("Failed to set up file logging", log_file=log_file, error=str(e))
        else:
            slog.info("File logging enabled", log_file=log_file)

    slog.debug(
        "Logging configured",
        log_level=logging.getLevelName(level),
        json_console_format=json_logs,
        console_output_enabled=console_enabled,
        log_file=log_file or "None",
    )


def ensure_stderr_logging() -> None:
    """
    Points structlog at stderr unless the application already configured it.

    structlog's defaults print to stdout, which is the protocol channel of a
    stdio server. Loggers bound before this call keep their old target.
    """
    if not structlog.is_configured():
        structlog.configure(logger_factory=structlog.PrintLoggerFactory(sys.stderr))


StructLogger = FilteringBoundLogger

# 🔼⚙️
