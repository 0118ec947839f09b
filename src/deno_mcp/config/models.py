#
# config/models.py
#
"""
Attrs-based data models for deno-mcp configuration.
"""

import logging
from pathlib import Path
from typing import Any

from attrs import define, field


# --- Validators ---
def _validate_log_level(inst: Any, attr: Any, value: str) -> None:
    """Validator for standard logging level names."""
    valid = logging._nameToLevel.keys()
    if value.upper() not in valid:
        raise ValueError(f"Invalid log_level '{value}'. Must be one of {list(valid)}.")


def _validate_non_empty(inst: Any, attr: Any, value: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Field '{attr.name}' must be a non-empty string, got {value!r}")


@define(frozen=True, slots=True)
class ServerConfig:
    """Settings for the tool server and the Deno commands it runs."""
    deno_path: str = field(validator=_validate_non_empty)
    workspace: Path = field(converter=Path)
    # Appended to every `deno test` invocation.
    test_args: tuple[str, ...] = field(default=(), converter=tuple)
    server_name: str = field(default="Deno MCP")
    server_version: str = field(default="0.1.0")


@define(frozen=True, slots=True)
class GlobalConfig:
    """Global default settings for deno-mcp."""
    log_level: str = field(default="INFO", validator=_validate_log_level)

    @property
    def numeric_log_level(self) -> int:
        return logging.getLevelName(self.log_level.upper())


@define(frozen=True, slots=True)
class DenoMcpConfig:
    """Root configuration object for the deno-mcp application."""
    server: ServerConfig
    global_config: GlobalConfig = field(factory=GlobalConfig)

# 🔼⚙️
