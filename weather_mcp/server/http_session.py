"""
http_session.py – Streamable HTTP server with session continuity
----------------------------------------------------------------
* POST   /mcp    – initialize a session, or send a message on an existing one.
* GET    /mcp    – server-to-client notification stream for a session (SSE).
* DELETE /mcp    – terminate a session.
* GET    /health – liveness probe.

Every session owns its own transport and protocol server; sessions are looked up by
the ``mcp-session-id`` header the server hands out on initialization.

Dependencies
    pip install mcp starlette uvicorn anyio
"""

# --------------------------------------------------------------------------- #
#  Imports
# --------------------------------------------------------------------------- #

import contextlib
import logging
from datetime import datetime, timezone
from http import HTTPStatus
from typing import AsyncIterator, Callable, Optional
from uuid import uuid4

import anyio
from anyio.abc import TaskGroup, TaskStatus
from mcp.server.fastmcp import FastMCP
from mcp.server.streamable_http import MCP_SESSION_ID_HEADER, StreamableHTTPServerTransport
from mcp.server.transport_security import TransportSecuritySettings
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from ..config import Settings
from .nws import NWSClient
from .responses import (
    NO_DNS_REBINDING_PROTECTION,
    INTERNAL_ERROR,
    PARSE_ERROR,
    SERVER_ERROR,
    TrackedSend,
    is_initialize_request,
    jsonrpc_error,
    parse_json_body,
    replay_body,
)
from .sessions import Session, SessionRegistry
from .weather import ToolProfile, create_server, protocol_server

logger = logging.getLogger(__name__)

ServerFactory = Callable[[], FastMCP]

# --------------------------------------------------------------------------- #
#  Session binding
# --------------------------------------------------------------------------- #


class SessionHTTPBinding:
    """ASGI endpoint that routes ``/mcp`` requests to per-session transports.

    ``run()`` must be entered (normally from the application lifespan) before any
    request is handled: it owns the task group the session servers run in.
    """

    def __init__(
        self,
        server_factory: ServerFactory,
        registry: Optional[SessionRegistry] = None,
        json_response: bool = False,
        security_settings: Optional[TransportSecuritySettings] = NO_DNS_REBINDING_PROTECTION,
    ) -> None:
        self.server_factory = server_factory
        self.registry = registry if registry is not None else SessionRegistry()
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
                for session in self.registry:
                    await session.transport.terminate()
                self.registry.clear()
                tg.cancel_scope.cancel()
                self._task_group = None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if self._task_group is None:
            raise RuntimeError("SessionHTTPBinding.run() has not been entered")

        request = Request(scope, receive)
        tracked = TrackedSend(send)
        try:
            if request.method == "POST":
                await self._handle_post(request, scope, receive, tracked)
            elif request.method in ("GET", "DELETE"):
                await self._handle_session_request(request, scope, receive, tracked)
            else:
                response = PlainTextResponse("Method Not Allowed", status_code=HTTPStatus.METHOD_NOT_ALLOWED)
                await response(scope, receive, tracked)
        except Exception as exc:
            logger.error(f"Error handling MCP request: {exc}", exc_info=True)
            if tracked.response_started:
                raise
            response = jsonrpc_error(INTERNAL_ERROR, "Internal server error", HTTPStatus.INTERNAL_SERVER_ERROR)
            await response(scope, receive, send)

    async def _handle_post(self, request: Request, scope: Scope, receive: Receive, send: Send) -> None:
        session_id = request.headers.get(MCP_SESSION_ID_HEADER)
        session = self._live_session(session_id)
        if session is not None:
            await session.transport.handle_request(scope, receive, send)
            return

        if session_id is not None:
            logger.warning(f"POST for unknown session {session_id}")
            await self._reject_post(scope, receive, send)
            return

        body = await request.body()
        try:
            payload = parse_json_body(body)
        except ValueError:
            response = jsonrpc_error(PARSE_ERROR, "Parse error", HTTPStatus.BAD_REQUEST)
            await response(scope, receive, send)
            return

        if not is_initialize_request(payload):
            await self._reject_post(scope, receive, send)
            return

        session = await self._start_session()
        tracked = TrackedSend(send)
        try:
            await session.transport.handle_request(scope, replay_body(body, receive), tracked)
        finally:
            if not _is_success(tracked.status_code):
                await self._discard_session(session, tracked.status_code)

    async def _handle_session_request(self, request: Request, scope: Scope, receive: Receive, send: Send) -> None:
        session_id = request.headers.get(MCP_SESSION_ID_HEADER)
        session = self._live_session(session_id)
        if session is None:
            response = PlainTextResponse("Invalid or missing session ID", status_code=HTTPStatus.BAD_REQUEST)
            await response(scope, receive, send)
            return

        await session.transport.handle_request(scope, receive, send)
        if request.method == "DELETE" and session.transport.is_terminated:
            self._on_transport_closed(session.session_id)

    async def _reject_post(self, scope: Scope, receive: Receive, send: Send) -> None:
        response = jsonrpc_error(SERVER_ERROR, "Bad Request: No valid session ID provided", HTTPStatus.BAD_REQUEST)
        await response(scope, receive, send)

    async def _start_session(self) -> Session:
        session_id = uuid4().hex
        transport = StreamableHTTPServerTransport(
            mcp_session_id=session_id,
            is_json_response_enabled=self.json_response,
            event_store=None,
            security_settings=self.security_settings,
        )
        server = protocol_server(self.server_factory())
        session = self.registry.create(session_id, transport, server)

        async def run_server(*, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
            try:
                async with transport.connect() as (read_stream, write_stream):
                    task_status.started()
                    try:
                        await server.run(
                            read_stream,
                            write_stream,
                            server.create_initialization_options(),
                            stateless=False,
                        )
                    except Exception as exc:
                        logger.error(f"Session {session_id} crashed: {exc}", exc_info=True)
            finally:
                self._on_transport_closed(session_id)

        await self._task_group.start(run_server)
        return session

    def _live_session(self, session_id: Optional[str]) -> Optional[Session]:
        """Registered session for *session_id*, dropping it if its transport already closed."""
        session = self.registry.get(session_id)
        if session is not None and session.transport.is_terminated:
            self._on_transport_closed(session.session_id)
            return None
        return session

    async def _discard_session(self, session: Session, status_code: Optional[int]) -> None:
        logger.warning(f"Initialization of session {session.session_id} rejected (status {status_code})")
        await session.transport.terminate()
        self._on_transport_closed(session.session_id)

    def _on_transport_closed(self, session_id: str) -> None:
        self.registry.remove(session_id)


def _is_success(status_code: Optional[int]) -> bool:
    return status_code is not None and 200 <= status_code < 300


# --------------------------------------------------------------------------- #
#  Application
# --------------------------------------------------------------------------- #


async def health(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()})


def create_app(settings: Optional[Settings] = None, client: Optional[NWSClient] = None) -> Starlette:
    """Starlette app serving the session-based Streamable HTTP transport."""
    settings = settings or Settings()
    nws = client or NWSClient.from_settings(settings)

    binding = SessionHTTPBinding(
        server_factory=lambda: create_server(ToolProfile.SDK, nws),
        json_response=settings.json_response,
    )

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        async with binding.run():
            logger.info("Session manager started")
            yield
        logger.info("Session manager stopped")

    app = Starlette(
        routes=[
            Route("/mcp", endpoint=binding),
            Route("/health", endpoint=health, methods=["GET"]),
        ],
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
