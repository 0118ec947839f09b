#
# tests/unit/test_cli.py
#
"""
Tests for the click command line interface.
"""

import json
import sys
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from deno_mcp.cli.main import cli
from deno_mcp.cli.tools_cmds import split_server_command
from deno_mcp.exceptions import TransportError
from deno_mcp.transport import CloseInfo, StdioServerTransport


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestMainCLI:
    def test_help_lists_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "deno-mcp" in result.output
        for command in ("serve", "config", "tools"):
            assert command in result.output

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "deno-mcp, version" in result.output

    def test_invalid_log_level(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--log-level", "CHATTY", "config", "show"])
        assert result.exit_code == 2


class TestConfigShow:
    def test_shows_resolved_config(self, runner: CliRunner, workspace: Path) -> None:
        result = runner.invoke(
            cli,
            ["config", "show", "-w", str(workspace), "--deno-path", "/opt/deno", "--allow-read", "--allow-env"],
        )

        assert result.exit_code == 0, result.output
        assert "DenoMcpConfig" in result.output
        assert "/opt/deno" in result.output
        assert "--allow-env" in result.output

    def test_bad_workspace(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["config", "show", "-w", str(tmp_path / "missing")])
        assert result.exit_code == 1
        assert "not an existing directory" in result.output

    def test_workspace_from_environment(self, runner: CliRunner, workspace: Path) -> None:
        result = runner.invoke(
            cli,
            ["config", "show"],
            env={"WORKSPACE_FOLDER_PATHS": str(workspace), "DENO_MCP_DENO_PATH": "env-deno"},
        )
        assert result.exit_code == 0, result.output
        assert "env-deno" in result.output


class TestServe:
    @patch("deno_mcp.cli.serve_cmds._serve", new_callable=AsyncMock)
    def test_wires_server_to_stdio(self, mock_serve: AsyncMock, runner: CliRunner, workspace: Path) -> None:
        mock_serve.return_value = CloseInfo(reason="end of stream")

        result = runner.invoke(cli, ["serve", "-w", str(workspace), "--deno-path", "/opt/deno", "--allow-read"])

        assert result.exit_code == 0, result.output
        server, transport = mock_serve.await_args.args
        assert isinstance(transport, StdioServerTransport)
        assert [tool.name for tool in server.registry.list_tools()] == ["test", "coverage"]

    @patch("deno_mcp.cli.serve_cmds._serve", new_callable=AsyncMock)
    def test_configuration_error_exits_with_one(self, mock_serve: AsyncMock, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["serve"], env={"WORKSPACE_FOLDER_PATHS": str(tmp_path / "missing")})

        assert result.exit_code == 1
        assert "not an existing directory" in result.output
        mock_serve.assert_not_awaited()

    @patch("deno_mcp.cli.serve_cmds._serve", new_callable=AsyncMock)
    def test_unusable_stdout_exits_with_one(self, mock_serve: AsyncMock, runner: CliRunner, workspace: Path) -> None:
        mock_serve.side_effect = TransportError("stdout cannot be written as a stream (not a regular file)")

        result = runner.invoke(cli, ["serve", "-w", str(workspace)])

        assert result.exit_code == 1
        assert "stdout cannot be written" in result.output

    def test_missing_workspace_is_usage_error(
self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["serve", "-w", str(tmp_path / "missing")])
        assert result.exit_code == 2

    def test_help(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["serve", "--help"])
        assert result.exit_code == 0
        assert "TEST_ARGS" in result.output


class TestToolsCommands:
    def test_call_rejects_invalid_json(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["tools", "call", "-a", "{nope", "test", "--", "deno-mcp", "serve"])
        assert result.exit_code == 2
        assert "not valid JSON" in result.output

    def test_call_rejects_non_object_arguments(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["tools", "call", "-a", json.dumps([1]), "test", "--", "deno-mcp", "serve"])
        assert result.exit_code == 2
        assert "must be a JSON object" in result.output

    def test_list_reports_launch_failure(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["tools", "list", "--", str(tmp_path / "no-such-server")])
        assert result.exit_code == 1
        assert "Failed to launch" in result.output

    @pytest.mark.skipif(sys.platform == "win32", reason="uses shebang scripts")
    def test_call_through_real_server(self, runner: CliRunner, workspace: Path, make_fake_deno) -> None:
        deno = make_fake_deno(exit_code=2, stdout="running 1 test\n", stderr="FAIL: 1 failed")

        result = runner.invoke(
            cli,
            [
                "tools", "call", "--timeout", "60", "test", "--",
                sys.executable, "-m", "deno_mcp", "serve", "-w", str(workspace), "--deno-path", str(deno),
            ],
        )

        assert result.exit_code == 1
        assert "FAIL: 1 failed" in result.output

    @pytest.mark.skipif(sys.platform == "win32", reason="uses shebang scripts")
    def test_list_through_real_server(self, runner: CliRunner, workspace: Path) -> None:
        result = runner.invoke(
            cli,
            ["tools", "list", "--timeout", "60", "--", sys.executable, "-m", "deno_mcp", "serve", "-w", str(workspace)],
        )

        assert result.exit_code == 0, result.output
        assert "test" in result.output
        assert "coverage" in result.output

    def test_call_without_server_command_is_usage_error(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["tools", "call", "test", "--"])
        assert result.exit_code == 2
        assert "Missing the server command" in result.output


class TestSplitServerCommand:
    def test_separator_after_tool_name_is_dropped(self) -> None:
        assert split_server_command(["--", "deno-mcp", "serve", "--allow-read"]) == (
            "deno-mcp",
            ["serve", "--allow-read"],
        )

    def test_command_without_separator(self) -> None:
        assert split_server_command(["deno-mcp", "serve"]) == ("deno-mcp", ["serve"])

    def test_only_the_leading_separator_is_dropped(self) -> None:
        assert split_server_command(["--", "deno-mcp", "--", "x"]) == ("deno-mcp", ["--", "x"])
