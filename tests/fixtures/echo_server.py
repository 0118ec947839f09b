#
# tests/fixtures/echo_server.py
#
"""
A small server spoken to by the integration tests over real stdio.

Methods:
    add-two   -> params["a"] + params["b"]
    sleep     -> waits params["seconds"], then returns "slept"
    exit      -> terminates the process with params["code"] without answering
"""

import asyncio
import logging
import os
import sys

from deno_mcp.server import McpServer
from deno_mcp.telemetry import setup_logging
from deno_mcp.transport import StdioServerTransport


def build_server() -> McpServer:
    server = McpServer("echo", "1.0")

    @server.request_handler("add-two")
    def add_two(params):
        return params["a"] + params["b"]

    @server.request_handler("sleep")
    async def sleep(params):
        await asyncio.sleep(params["seconds"])
        return "slept"

    @server.request_handler("exit")
    def exit_now(params):
        sys.stderr.flush()
        os._exit(params.get("code", 3))

    return server


async def main() -> None:
    setup_logging(level=logging.WARNING)
    sys.stderr.write("echo server ready\n")
    sys.stderr.flush()
    await build_server().serve(StdioServerTransport())


if __name__ == "__main__":
    asyncio.run(main())
