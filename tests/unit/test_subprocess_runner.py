#
# tests/unit/test_subprocess_runner.py
#
"""
Tests for SubprocessCommandRunner using the current Python interpreter as
the child command.
"""

import asyncio
import sys
from pathlib import Path

import pytest

from deno_mcp.exceptions import CommandError
from deno_mcp.runner import CommandRunner, SubprocessCommandRunner


@pytest.mark.asyncio
class TestSubprocessCommandRunner:
    async def test_captures_output_and_exit_code(self, tmp_path: Path) -> None:
        runner = SubprocessCommandRunner()
        script = "import sys; print('out'); sys.stderr.write('FAIL: 1 failed'); sys.exit(2)"

        result = await runner.run([sys.executable, "-c", script], cwd=tmp_path)

        assert result.exit_code == 2
        assert result.success is False
        assert result.stdout.strip() == "out"
        assert result.stderr == "FAIL: 1 failed"
        assert result.combined_output.endswith("FAIL: 1 failed")

    async def test_runs_in_cwd_with_extra_env(self, tmp_path: Path) -> None:
        runner = SubprocessCommandRunner()
        script = "import os; print(os.getcwd()); print(os.environ['NO_COLOR'])"

        result = await runner.run([sys.executable, "-c", script], cwd=tmp_path, env={"NO_COLOR": "1"})

        cwd_line, no_color = result.stdout.splitlines()
        assert Path(cwd_line).resolve() == tmp_path.resolve()
        assert no_color == "1"
        assert result.success

    async def test_stdin_is_not_inherited(self, tmp_path: Path) -> None:
        runner = SubprocessCommandRunner()
        script = "import sys; print(repr(sys.stdin.read()))"

        result = await asyncio.wait_for(runner.run([sys.executable, "-c", script], cwd=tmp_path), 10)

        assert result.stdout.strip() == "''"

    async def test_missing_executable(self, tmp_path: Path) -> None:
        runner = SubprocessCommandRunner()
        with pytest.raises(CommandError, match="Command not found") as exc_info:
            await runner.run(["definitely-not-deno-xyz"], cwd=tmp_path)
        assert exc_info.value.command == ["definitely-not-deno-xyz"]

    async def test_cancellation_kills_child(self, tmp_path: Path) -> None:
        runner = SubprocessCommandRunner()
        task = asyncio.create_task(runner.run([sys.executable, "-c", "import time; time.sleep(30)"], cwd=tmp_path))
        await asyncio.sleep(0.3)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await asyncio.wait_for(task, 10)


class TestCommandRunnerProtocol:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(SubprocessCommandRunner(), CommandRunner)
