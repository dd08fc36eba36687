"""End-to-end: spawn ``python -m weather_mcp.server --transport stdio`` and talk to it."""

from contextlib import asynccontextmanager

import pytest

from weather_mcp.client.client import WeatherClient, build_parser, result_text


@asynccontextmanager
async def stdio_server():
    client = WeatherClient()
    try:
        await client.connect_stdio()
        yield client
    finally:
        await client.cleanup()


@pytest.mark.asyncio
async def test_stdio_lists_both_tools():
    async with stdio_server() as client:
        tools = await client.list_tools()

    assert sorted(tool.name for tool in tools) == ["get-alerts", "get-forecast"]


@pytest.mark.asyncio
async def test_stdio_rejects_out_of_range_latitude():
    async with stdio_server() as client:
        result = await client.call_tool("get-forecast", {"latitude": 123.0, "longitude": 0.0})

    assert result.isError
    assert result_text(result)


def test_client_arguments():
    options = build_parser().parse_args(
        ["--url", "http://localhost:3000/mcp", "--tool", "get-alerts", "--args", '{"state": "CA"}']
    )

    assert options.url == "http://localhost:3000/mcp"
    assert options.tool == "get-alerts"
    assert options.args == '{"state": "CA"}'
