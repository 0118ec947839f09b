#
# src/deno_mcp/tools/__init__.py
#
"""
Tools exposed by the deno-mcp server.
"""
from .deno import CoverageParams, DenoTestParams, register_deno_tools

__all__ = [
    "CoverageParams",
    "DenoTestParams",
    "register_deno_tools",
]

# 🔼⚙️
