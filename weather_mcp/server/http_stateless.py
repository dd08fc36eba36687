"""
http_stateless.py – Streamable HTTP server without sessions
-----------------------------------------------------------
* POST   /mcp – one JSON-RPC exchange, served by a throwaway server + transport.
* GET    /mcp – rejected (no notification stream without a session).
* DELETE /mcp – rejected (nothing to terminate).

A new protocol server and transport are built for every POST, so concurrent
clients never share request ids or state.

Dependencies
    pip install mcp starlette uvicorn anyio
"""

# --------------------------------------------------------------------------- #
#  Imports
# --------------------------------------------------------------------------- #

import contextlib
import logging
from http import HTTPStatus
from typing import AsyncIterator, Callable, Optional

import anyio
from anyio.abc import TaskGroup, TaskStatus
from mcp.server.fastmcp import FastMCP
from mcp.server.streamable_http import MCP_SESSION_ID_HEADER, StreamableHTTPServerTransport
from mcp.server.transport_security import TransportSecuritySettings
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from ..config import Settings
from .nws import NWSClient
from .responses import NO_DNS_REBINDING_PROTECTION, INTERNAL_ERROR, SERVER_ERROR, TrackedSend, jsonrpc_error
from .weather import ToolProfile, create_server, protocol_server

logger = logging.getLogger(__name__)

# --------------------------------------------------------------------------- #
#  Stateless binding
# --------------------------------------------------------------------------- #


class StatelessHTTPBinding:
    """ASGI endpoint answering each POST with a fresh server/transport pair."""

    def __init__(
        self,
        server_factory: Callable[[], FastMCP],
        json_response: bool = False,
        security_settings: Optional[TransportSecuritySettings] = NO_DNS_REBINDING_PROTECTION,
    ) -> None:
        self.server_factory = server_factory
        self.json_response = json_response
        self.security_settings = security_settings
        self._task_group: Optional[TaskGroup] = None

    @contextlib.asynccontextmanager
    async def run(self) -> AsyncIterator[None]:
        async with anyio.create_task_group() as tg:
            self._task_group = tg
            try:
                yield
            finally:
                tg.cancel_scope.cancel()
                self._task_group = None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if self._task_group is None:
            raise RuntimeError("StatelessHTTPBinding.run() has not been entered")

        request = Request(scope, receive)
        if request.method != "POST":
            logger.info(f"Received {request.method} MCP request")
            response = jsonrpc_error(SERVER_ERROR, "Method not allowed.", HTTPStatus.METHOD_NOT_ALLOWED)
            await response(scope, receive, send)
            return

        await self._handle_post(scope, receive, send)

    async def _handle_post(self, scope: Scope, receive: Receive, send: Send) -> None:
        server = protocol_server(self.server_factory())
        transport = StreamableHTTPServerTransport(
            mcp_session_id=None,
            is_json_response_enabled=self.json_response,
            event_store=None,
            security_settings=self.security_settings,
        )

        async def run_server(*, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
            async with transport.connect() as (read_stream, write_stream):
                task_status.started()
                try:
                    await server.run(
                        read_stream,
                        write_stream,
                        server.create_initialization_options(),
                        stateless=True,
                    )
                except Exception as exc:
                    logger.error(f"Stateless server crashed: {exc}", exc_info=True)

        tracked = TrackedSend(send)
        try:
            await self._task_group.start(run_server)
            await transport.handle_request(scope, receive, tracked)
        except Exception as exc:
            logger.error(f"Error handling MCP request: {exc}", exc_info=True)
            if tracked.response_started:
                raise
            response = jsonrpc_error(INTERNAL_ERROR, "Internal server error", HTTPStatus.INTERNAL_SERVER_ERROR)
            await response(scope, receive, send)
        finally:
            await transport.terminate()
            logger.debug("Request closed")


# --------------------------------------------------------------------------- #
#  Application
# --------------------------------------------------------------------------- #


def create_app(settings: Optional[Settings] = None, client: Optional[NWSClient] = None) -> Starlette:
    """Starlette app serving the stateless Streamable HTTP transport."""
    settings = settings or Settings()
    nws = client or NWSClient.from_settings(settings)

    binding = StatelessHTTPBinding(
        server_factory=lambda: create_server(ToolProfile.MINIMAL, nws),
        json_response=settings.json_response,
    )

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        async with binding.run():
            yield

    app = Starlette(
        routes=[Route("/mcp", endpoint=binding)],
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=["*"],
                allow_methods=["GET", "POST", "DELETE"],
                allow_headers=["*"],
                expose_headers=[MCP_SESSION_ID_HEADER],
            )
        ],
        lifespan=lifespan,
    )
    app.state.binding = binding
    return app
