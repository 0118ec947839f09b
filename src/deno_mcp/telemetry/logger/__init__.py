#
# src/deno_mcp/telemetry/logger/__init__.py
#
from .base import StructLogger, ensure_stderr_logging, setup_logging

__all__ = ["StructLogger", "ensure_stderr_logging", "setup_logging"]
