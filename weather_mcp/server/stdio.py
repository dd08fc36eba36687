"""Stdio transport: one weather server bound to stdin/stdout for the process lifetime."""

import logging
from typing import Optional

from ..config import Settings
from .nws import NWSClient
from .weather import ToolProfile, create_server

logger = logging.getLogger(__name__)


def run_stdio(settings: Optional[Settings] = None, client: Optional[NWSClient] = None) -> None:
    """Serve newline-delimited JSON-RPC on the standard streams until EOF."""
    settings = settings or Settings()
    mcp = create_server(ToolProfile.SDK, client or NWSClient.from_settings(settings))
    logger.info("Weather MCP Server running on stdio")
    mcp.run(transport="stdio")
