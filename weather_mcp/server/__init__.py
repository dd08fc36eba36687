"""MCP servers for the NWS weather tools (stdio, session HTTP, stateless HTTP)."""

from .weather import ToolProfile, ToolResult, create_server

__all__ = ["ToolProfile", "ToolResult", "create_server"]
