#
# src/deno_mcp/runner/protocols.py
#
"""
Defines protocols and data structures for command execution.
"""
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from attrs import define


@define(frozen=True, slots=True)
class CommandResult:
    """
    Structured result from a finished command.
    """
    exit_code: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def combined_output(self) -> str:
        return self.stdout + self.stderr


@runtime_checkable
class CommandRunner(Protocol):
    """
    Protocol for something that can run a command line and capture its output.
    """
    async def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """
        Runs the command to completion.

        Args:
            command: The executable and its arguments.
            cwd: The directory to run the command in.
            env: Variables to set on top of the current environment.

        Returns:
            A CommandResult with the exit code and captured output.

        Raises:
            CommandError: If the command could not be started.
        """
        ...

# 🔼⚙️
