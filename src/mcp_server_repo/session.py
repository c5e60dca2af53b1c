"""
Streaming session registry for the MCP repository server.

- Maps an opaque session identifier to the SSE connection that owns it.
- Insert on connect, remove on disconnect; nothing outside the transport
  layer reads or writes the mapping.
- Each connection gets its own SseServerTransport whose message endpoint
  embeds the session identifier.
- The announced endpoint is `/messages/<sessionId>?session_id=<transportId>`.
  The path segment is the only identifier routing depends on; the query
  parameter is minted by SseServerTransport and only read back by that
  same transport instance to find its write stream.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from mcp.server.sse import SseServerTransport

logger = logging.getLogger(__name__)


@dataclass
class StreamSession:
    session_id: str
    transport: SseServerTransport
    start_time: float = field(default_factory=time.time)
    last_active: float = field(default_factory=time.time)
    message_count: int = 0

    def touch(self) -> None:
        self.message_count += 1
        self.last_active = time.time()

    def as_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "message_count": self.message_count,
            "uptime": time.time() - self.start_time,
            "idle_time": time.time() - self.last_active,
        }


class StreamSessionRegistry:
    """
    Owns every open streaming session.
    Provides session creation, lookup, removal, and metrics.
    """

    def __init__(self, message_path: str = "/messages/"):
        self._sessions: Dict[str, StreamSession] = {}
        self._lock = asyncio.Lock()
        self._message_path = message_path.rstrip("/") + "/"

    def endpoint_for(self, session_id: str) -> str:
        return f"{self._message_path}{session_id}"

    async def open(self) -> StreamSession:
        """Allocate a session identifier and register a transport for it."""
        async with self._lock:
            session_id = uuid.uuid4().hex
            transport = SseServerTransport(self.endpoint_for(session_id))
            session = StreamSession(session_id=session_id, transport=transport)
            self._sessions[session_id] = session
            logger.info(
                f"Stream session {session_id} opened",
                extra={"session_id": session_id},
            )
            return session

    async def get(self, session_id: str) -> Optional[StreamSession]:
        async with self._lock:
            return self._sessions.get(session_id)

    async def close(self, session_id: str) -> bool:
        """Release a session identifier. Returns False if it was already gone."""
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        logger.info(
            f"Stream session {session_id} closed after {session.message_count} messages",
            extra={"session_id": session_id},
        )
        return True

    async def get_metrics(self) -> Dict[str, Any]:
        async with self._lock:
            return {sid: session.as_dict() for sid, session in self._sessions.items()}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions
