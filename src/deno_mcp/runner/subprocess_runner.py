#
# src/deno_mcp/runner/subprocess_runner.py
#
"""
A generic command runner using asyncio.subprocess.
"""
import asyncio
import contextlib
import os
from collections.abc import Mapping, Sequence
from pathlib import Path

import structlog

from deno_mcp.exceptions import CommandError
from deno_mcp.runner.protocols import CommandResult, CommandRunner

log = structlog.get_logger("runner.subprocess")


class SubprocessCommandRunner(CommandRunner):
    """
    Implements the CommandRunner protocol with asyncio.create_subprocess_exec.

    The child's stdin is /dev/null: when serving over stdio, an inherited
    stdin would let the child swallow protocol frames.
    """
    async def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """
        Executes the command and waits for it to finish.
        """
        command = list(command)
        runner_log = log.bind(
            command=" ".join(command),
            working_dir=str(cwd),
        )
        runner_log.info("Executing command")

        full_env = dict(os.environ)
        if env:
            full_env.update(env)

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env=full_env,
            )
        except FileNotFoundError as e:
            runner_log.error("Command not found", command_executable=command[0])
            raise CommandError(
                f"Command not found: '{command[0]}'. Is it installed and in the system's PATH?",
                command=command,
                details=e,
            ) from e
        except OSError as e:
            runner_log.error("Command could not be started", error=str(e))
            raise CommandError(f"Failed to start '{command[0]}': {e}", command=command, details=e) from e

        try:
            stdout_bytes, stderr_bytes = await process.communicate()
        except asyncio.CancelledError:
            runner_log.warning("Command cancelled, killing process", pid=process.pid)
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()
            raise

        exit_code = process.returncode if process.returncode is not None else -1
        stdout = stdout_bytes.decode("utf-8", errors="replace")
        stderr = stderr_bytes.decode("utf-8", errors="replace")

        runner_log.info(
            "Command finished",
            exit_code=exit_code,
            success=exit_code == 0,
        )
        runner_log.debug(
            "Command output",
            stdout_len=len(stdout),
            stderr_len=len(stderr),
        )

        return CommandResult(exit_code=exit_code, stdout=stdout, stderr=stderr)

# 🔼⚙️
