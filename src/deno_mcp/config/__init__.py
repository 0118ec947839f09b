#
# config/__init__.py
#
"""
Configuration handling sub-package for deno-mcp.

Exports the loading function and core configuration models.
"""

from .loader import load_config
from .models import DenoMcpConfig, GlobalConfig, ServerConfig

__all__ = [
    "DenoMcpConfig",
    "GlobalConfig",
    "ServerConfig",
    "load_config",
]

# 🔼⚙️
