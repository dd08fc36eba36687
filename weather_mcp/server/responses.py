"""JSON-RPC error bodies and ASGI helpers shared by the HTTP bindings."""

import json
from typing import Any, Optional

from pydantic import ValidationError
from mcp.server.transport_security import TransportSecuritySettings
from mcp.types import JSONRPCRequest
from starlette.responses import JSONResponse
from starlette.types import Message, Receive, Send

# JSON-RPC error codes used outside the SDK's own handling
PARSE_ERROR = -32700
SERVER_ERROR = -32000
INTERNAL_ERROR = -32603

# Local development server; Host/Origin headers are not checked
NO_DNS_REBINDING_PROTECTION = TransportSecuritySettings(enable_dns_rebinding_protection=False)


def jsonrpc_error(code: int, message: str, status_code: int, request_id: Any = None) -> JSONResponse:
    return JSONResponse(
        {"jsonrpc": "2.0", "error": {"code": code, "message": message}, "id": request_id},
        status_code=status_code,
    )


def parse_json_body(body: bytes) -> Any:
    """Decode a request body; raises ``ValueError`` on anything that is not JSON."""
    return json.loads(body)


def is_initialize_request(payload: Any) -> bool:
    """True for a single JSON-RPC ``initialize`` request object."""
    if not isinstance(payload, dict):
        return False
    try:
        request = JSONRPCRequest.model_validate(payload)
    except ValidationError:
        return False
    return request.method == "initialize"


def replay_body(body: bytes, receive: Receive) -> Receive:
    """Return a ``receive`` that yields an already-read body once, then defers to ``receive``."""
    pending = True

    async def wrapped() -> Message:
        nonlocal pending
        if pending:
            pending = False
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return wrapped


class TrackedSend:
    """Wraps ``send`` and remembers whether the response has started."""

    def __init__(self, send: Send) -> None:
        self._send = send
        self.response_started = False
        self.status_code: Optional[int] = None

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self.response_started = True
            self.status_code = message["status"]
        await self._send(message)
