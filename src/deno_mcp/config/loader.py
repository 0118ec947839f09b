#
# config/loader.py
#
"""
Builds the configuration from CLI values, environment variables and defaults.

Precedence: CLI options > environment variables > defaults.
"""

import os
import shutil
from collections.abc import Mapping, Sequence
from pathlib import Path

import structlog

from deno_mcp.config.models import DenoMcpConfig, GlobalConfig, ServerConfig
from deno_mcp.exceptions import ConfigurationError

log = structlog.get_logger("config.loader")

# Set by editors (Cursor) to the folder the user has open.
WORKSPACE_ENV_VAR = "WORKSPACE_FOLDER_PATHS"
DENO_PATH_ENV_VAR = "DENO_MCP_DENO_PATH"
LOG_LEVEL_ENV_VAR = "DENO_MCP_LOG_LEVEL"


def resolve_deno_path(environ: Mapping[str, str]) -> str:
    """Explicit override, then `deno` on PATH, then the bare name."""
    explicit = environ.get(DENO_PATH_ENV_VAR)
    if explicit:
        return explicit
    found = shutil.which("deno", path=environ.get("PATH"))
    return found or "deno"


def load_config(
    test_args: Sequence[str] = (),
    *,
    environ: Mapping[str, str] | None = None,
    workspace: Path | None = None,
    deno_path: str | None = None,
    log_level: str | None = None,
) -> DenoMcpConfig:
    """
    Resolves and validates the configuration.

    Raises:
        ConfigurationError: If the workspace is not a directory or a value
            fails validation.
    """
    environ = os.environ if environ is None else environ

    if workspace is None:
        workspace_value = environ.get(WORKSPACE_ENV_VAR)
        workspace = Path(workspace_value) if workspace_value else Path.cwd()
    workspace = workspace.expanduser()
    if not workspace.is_dir():
        log.error("Workspace is not a directory", workspace=str(workspace))
        raise ConfigurationError(f"Workspace '{workspace}' is not an existing directory")

    try:
        config = DenoMcpConfig(
            server=ServerConfig(
                deno_path=deno_path or resolve_deno_path(environ),
                workspace=workspace.resolve(),
                test_args=tuple(test_args),
            ),
            global_config=GlobalConfig(log_level=log_level or environ.get(LOG_LEVEL_ENV_VAR) or "INFO"),
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    log.debug(
        "Configuration loaded",
        workspace=str(config.server.workspace),
        deno_path=config.server.deno_path,
        test_args=list(config.server.test_args),
    )
    return config

# 🔼⚙️
