"""
Command-line entrypoint for the weather MCP server.

    weather-mcp --transport http            # sessions + SSE (default)
    weather-mcp --transport stateless-http  # one server per request
    weather-mcp --transport stdio           # for MCP hosts that spawn the process
"""

import argparse
import logging
import sys
from dataclasses import replace
from typing import Optional, Sequence

import uvicorn

from ..config import Settings, configure_logging

logger = logging.getLogger("weather_mcp")

TRANSPORTS = ("http", "stateless-http", "stdio")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="weather-mcp",
        description="Serve NWS weather alerts and forecasts as MCP tools",
    )
    parser.add_argument("--transport", choices=TRANSPORTS, default="http", help="Wire transport (default: http)")
    parser.add_argument("--host", default=None, help="Listen host for the HTTP transports (env HOST)")
    parser.add_argument("--port", type=int, default=None, help="Listen port for the HTTP transports (env PORT)")
    parser.add_argument(
        "--json-response",
        action="store_true",
        default=None,
        help="Answer POST /mcp with application/json instead of an SSE stream",
    )
    return parser


def resolve_settings(args: argparse.Namespace, settings: Optional[Settings] = None) -> Settings:
    """Command-line flags override the environment."""
    settings = settings or Settings.from_env()
    overrides = {}
    if args.host is not None:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.json_response:
        overrides["json_response"] = True
    return replace(settings, **overrides)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    try:
        settings = resolve_settings(args)
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        sys.exit(2)

    configure_logging(settings.log_level, settings.log_file)

    if args.transport == "stdio":
        from .stdio import run_stdio

        run_stdio(settings)
        return

    if args.transport == "stateless-http":
        from .http_stateless import create_app

        label = "Weather MCP Stateless HTTP Server"
    else:
        from .http_session import create_app

        label = "Weather MCP Streamable HTTP Server"

    app = create_app(settings)
    logger.info(f"{label} listening on port {settings.port}")
    logger.info(f"MCP endpoint: http://localhost:{settings.port}/mcp")
    if args.transport == "http":
        logger.info(f"Health check: http://localhost:{settings.port}/health")

    try:
        uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    except OSError as exc:
        logger.error(f"Failed to start server: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
