#
# src/deno_mcp/runner/__init__.py
#
"""
Command execution sub-package for deno-mcp.
"""
from .protocols import CommandResult, CommandRunner
from .subprocess_runner import SubprocessCommandRunner

__all__ = [
    "CommandResult",
    "CommandRunner",
    "SubprocessCommandRunner",
]

# 🔼⚙️
