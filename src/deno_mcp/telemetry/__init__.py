#
# src/deno_mcp/telemetry/__init__.py
#
"""
Telemetry sub-package: structured logging setup for deno-mcp.
"""
from .logger import StructLogger, ensure_stderr_logging, setup_logging

__all__ = ["StructLogger", "ensure_stderr_logging", "setup_logging"]

# 🔼⚙️
