"""In-memory registry of live Streamable HTTP sessions."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterator, Optional

from mcp.server.lowlevel import Server
from mcp.server.streamable_http import StreamableHTTPServerTransport

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """One client session: its transport and the protocol server bound to it."""

    session_id: str
    transport: StreamableHTTPServerTransport
    server: Server
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SessionRegistry:
    """Maps ``mcp-session-id`` values to live sessions.

    Only touched from the event loop, and never across an ``await`` between a lookup
    and the matching insert. Entries leave only through :meth:`remove`; a client that
    disappears without closing its transport keeps its entry until restart.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}

    def create(self, session_id: str, transport: StreamableHTTPServerTransport, server: Server) -> Session:
        if session_id in self._sessions:
            raise KeyError(f"Session {session_id} already exists")
        session = Session(session_id=session_id, transport=transport, server=server)
        self._sessions[session_id] = session
        logger.info(f"Session initialized with ID: {session_id}")
        return session

    def get(self, session_id: Optional[str]) -> Optional[Session]:
        if session_id is None:
            return None
        return self._sessions.get(session_id)

    def remove(self, session_id: str) -> Optional[Session]:
        """Drop a session; removing an unknown id is a no-op."""
        session = self._sessions.pop(session_id, None)
        if session is not None:
            logger.info(f"Session {session_id} closed, removed from registry")
        return session

    def clear(self) -> None:
        self._sessions.clear()

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[Session]:
        return iter(list(self._sessions.values()))
