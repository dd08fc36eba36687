"""
client.py – poke a weather MCP server from the command line
===========================================================

Usage
-----
    # spawn the server over stdio and list its tools
    weather-mcp-client

    # talk to a running HTTP server and call a tool
    weather-mcp-client --url http://localhost:3000/mcp \\
        --tool get-alerts --args '{"state": "CA"}'
"""

import argparse
import asyncio
import json
import sys
from contextlib import AsyncExitStack
from typing import Any, Dict, List, Optional, Sequence

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.client.streamable_http import streamablehttp_client
from mcp.types import CallToolResult, TextContent, Tool


class WeatherClient:
    """One MCP client session against a weather server, over stdio or HTTP."""

    def __init__(self) -> None:
        self.exit_stack = AsyncExitStack()
        self.session: Optional[ClientSession] = None

    # ------------------------------------------------------------------
    #   Connect
    # ------------------------------------------------------------------
    async def connect_stdio(self, command: Optional[str] = None, args: Optional[List[str]] = None) -> None:
        """Spawn ``python -m weather_mcp.server --transport stdio`` (or ``command``) and attach."""
        server_params = StdioServerParameters(
            command=command or sys.executable,
            args=args if args is not None else ["-m", "weather_mcp.server", "--transport", "stdio"],
        )
        read_stream, write_stream = await self.exit_stack.enter_async_context(stdio_client(server_params))
        await self._open_session(read_stream, write_stream)

    async def connect_http(self, url: str) -> None:
        read_stream, write_stream, _ = await self.exit_stack.enter_async_context(streamablehttp_client(url))
        await self._open_session(read_stream, write_stream)

    async def _open_session(self, read_stream, write_stream) -> None:
        self.session = await self.exit_stack.enter_async_context(ClientSession(read_stream, write_stream))
        await self.session.initialize()

    # ------------------------------------------------------------------
    #   Tools
    # ------------------------------------------------------------------
    async def list_tools(self) -> List[Tool]:
        response = await self._require_session().list_tools()
        return response.tools

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> CallToolResult:
        return await self._require_session().call_tool(name, arguments)

    def _require_session(self) -> ClientSession:
        if self.session is None:
            raise RuntimeError("Not connected; call connect_stdio() or connect_http() first")
        return self.session

    # ------------------------------------------------------------------
    #   Cleanup
    # ------------------------------------------------------------------
    async def cleanup(self) -> None:
        await self.exit_stack.aclose()


def result_text(result: CallToolResult) -> str:
    """Join the text parts of a tool result."""
    return "\n".join(item.text for item in result.content if isinstance(item, TextContent))


# ---------------------------------------------------------------------------
#   Script entry‑point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="weather-mcp-client", description="List or call weather MCP tools")
    parser.add_argument("--url", help="Streamable HTTP endpoint; without it a stdio server is spawned")
    parser.add_argument("--tool", help="Tool to call after listing, e.g. get-alerts")
    parser.add_argument("--args", default="{}", help="JSON object of tool arguments")
    return parser


async def run(argv: Optional[Sequence[str]] = None) -> int:
    options = build_parser().parse_args(argv)
    try:
        tool_args = json.loads(options.args)
    except ValueError as exc:
        print(f"--args is not valid JSON: {exc}", file=sys.stderr)
        return 2

    client = WeatherClient()
    try:
        if options.url:
            await client.connect_http(options.url)
        else:
            await client.connect_stdio()

        tools = await client.list_tools()
        print("Connected tools:", [tool.name for tool in tools])

        if options.tool:
            result = await client.call_tool(options.tool, tool_args)
            print(result_text(result))
            return 1 if result.isError else 0
        return 0
    finally:
        await client.cleanup()


def main() -> None:
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
