#
# tests/unit/test_config.py
#
"""
Tests for configuration models and loading.
"""

from pathlib import Path

import pytest
from attrs.exceptions import FrozenInstanceError

from deno_mcp.config import GlobalConfig, ServerConfig, load_config
from deno_mcp.config.loader import DENO_PATH_ENV_VAR, LOG_LEVEL_ENV_VAR, WORKSPACE_ENV_VAR, resolve_deno_path
from deno_mcp.exceptions import ConfigurationError


class TestModels:
    def test_server_config_converts_types(self, tmp_path: Path) -> None:
        config = ServerConfig(deno_path="deno", workspace=str(tmp_path), test_args=["--allow-read"])
        assert config.workspace == tmp_path
        assert config.test_args == ("--allow-read",)

    def test_server_config_is_frozen(self, server_config: ServerConfig) -> None:
        with pytest.raises(FrozenInstanceError):
            server_config.deno_path = "other"

    def test_empty_deno_path_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            ServerConfig(deno_path=" ", workspace=tmp_path)

    def test_log_level_validation(self) -> None:
        assert GlobalConfig(log_level="debug").numeric_log_level == 10
        with pytest.raises(ValueError, match="Invalid log_level"):
            GlobalConfig(log_level="LOUD")


class TestLoadConfig:
    def test_workspace_from_environment(self, workspace: Path) -> None:
        config = load_config(environ={WORKSPACE_ENV_VAR: str(workspace), DENO_PATH_ENV_VAR: "/opt/deno"})
        assert config.server.workspace == workspace.resolve()
        assert config.server.deno_path == "/opt/deno"

    def test_workspace_defaults_to_cwd(self, workspace: Path, monkeypatch) -> None:
        monkeypatch.chdir(workspace)
        config = load_config(environ={DENO_PATH_ENV_VAR: "deno"})
        assert config.server.workspace == workspace.resolve()

    def test_explicit_values_win(self, workspace: Path, tmp_path: Path) -> None:
        other = tmp_path / "other"
        other.mkdir()
        config = load_config(
            ["--allow-net"],
            environ={WORKSPACE_ENV_VAR: str(other), DENO_PATH_ENV_VAR: "env-deno", LOG_LEVEL_ENV_VAR: "ERROR"},
            workspace=workspace,
            deno_path="cli-deno",
            log_level="DEBUG",
        )
        assert config.server.workspace == workspace.resolve()
        assert config.server.deno_path == "cli-deno"
        assert config.server.test_args == ("--allow-net",)
        assert config.global_config.log_level == "DEBUG"

    def test_missing_workspace(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not an existing directory"):
            load_config(environ={WORKSPACE_ENV_VAR: str(tmp_path / "nope")})

    def test_invalid_log_level(self, workspace: Path) -> None:
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_config(environ={WORKSPACE_ENV_VAR: str(workspace), LOG_LEVEL_ENV_VAR: "CHATTY"})


class TestResolveDenoPath:
    def test_explicit_override(self) -> None:
        assert resolve_deno_path({DENO_PATH_ENV_VAR: "/custom/deno", "PATH": ""}) == "/custom/deno"

    def test_found_on_path(self, make_fake_deno) -> None:
        deno = make_fake_deno()
        assert resolve_deno_path({"PATH": str(deno.parent)}) == str(deno)

    def test_bare_name_fallback(self, tmp_path: Path) -> None:
        assert resolve_deno_path({"PATH": str(tmp_path)}) == "deno"
