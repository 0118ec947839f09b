#
# src/deno_mcp/tools/deno.py
#
"""
The `test` and `coverage` tools, thin wrappers around the Deno CLI.
"""
import os
from collections.abc import Sequence

import structlog
from attrs import define
from attrs.validators import deep_iterable, instance_of, optional

from deno_mcp.config.models import ServerConfig
from deno_mcp.exceptions import CommandError
from deno_mcp.runner import CommandRunner, SubprocessCommandRunner
from deno_mcp.server.registry import Tool, ToolRegistry, ToolResult, param

log = structlog.get_logger("tools.deno")

# Deno output is read by a program, not a terminal.
NO_COLOR_ENV = {"NO_COLOR": "1"}

TEST_DESCRIPTION = (
    "Run Deno tests for specified files or directories. Supports options for coverage, "
    "JSDoc/Markdown evaluation, snapshot updates, and leak tracing."
)
COVERAGE_DESCRIPTION = (
    "Run coverage for a given file or directory. If it fails, try running the test tool "
    "first with coverage enabled."
)


def _flag(description: str, wire_name: str | None = None) -> bool:
    return param(
        schema={"type": "boolean"},
        description=description,
        wire_name=wire_name,
        default=False,
        validator=instance_of(bool),
    )


@define(frozen=True, slots=True)
class DenoTestParams:
    files: list[str] | None = param(
        schema={"type": "array", "items": {"type": "string"}},
        description="Test files or directories to run tests for. If not provided, all tests will be run.",
        default=None,
        validator=optional(deep_iterable(instance_of(str), instance_of(list))),
    )
    coverage: bool = _flag("Flag to collect coverage profile data.")
    doc: bool = _flag("Flag to evaluate code blocks in JSDoc and Markdown.")
    update: bool = _flag("Flag to update snapshot files for test cases that use snapshots.")
    trace_leaks: bool = _flag("Flag to enable tracing of leaks.", wire_name="traceLeaks")


@define(frozen=True, slots=True)
class CoverageParams:
    pass


def build_test_command(config: ServerConfig, params: DenoTestParams) -> list[str]:
    command = [config.deno_path, "test", *config.test_args]
    if params.coverage:
        command.append("--coverage")
    if params.trace_leaks:
        command.append("--trace-leaks")
    if params.doc:
        command.append("--doc")
    if params.files:
        command.extend(os.path.normpath(os.path.join(config.workspace, f)) for f in params.files)
    if params.update:
        # snapshot update flag goes to the test script, not to deno
        command.extend(["--", "--update"])
    return command


def build_coverage_command(config: ServerConfig) -> list[str]:
    return [config.deno_path, "coverage", "--detailed"]


async def _run_to_result(
    runner: CommandRunner,
    command: Sequence[str],
    config: ServerConfig,
    error_prefix: str,
) -> ToolResult:
    try:
        result = await runner.run(command, cwd=config.workspace, env=NO_COLOR_ENV)
    except CommandError as e:
        log.error(error_prefix, error=str(e))
        return ToolResult.text(f"{error_prefix}: {e}", is_error=True)
    return ToolResult.text(result.combined_output, is_error=not result.success)


def register_deno_tools(
    registry: ToolRegistry,
    config: ServerConfig,
    runner: CommandRunner | None = None,
) -> None:
    """Adds the `test` and `coverage` tools to a registry."""
    runner = runner if runner is not None else SubprocessCommandRunner()

    async def run_tests(params: DenoTestParams) -> ToolResult:
        return await _run_to_result(runner, build_test_command(config, params), config, "Error running tests")

    async def run_coverage(params: CoverageParams) -> ToolResult:
        return await _run_to_result(runner, build_coverage_command(config), config, "Error running coverage")

    registry.add(
        Tool(name="test", handler=run_tests, params_type=DenoTestParams, title="Test", description=TEST_DESCRIPTION)
    )
    registry.add(
        Tool(
            name="coverage",
            handler=run_coverage,
            params_type=CoverageParams,
            title="Coverage",
            description=COVERAGE_DESCRIPTION,
        )
    )

# 🔼⚙️
