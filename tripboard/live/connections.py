"""Registry of live WebSocket connections and the names they submitted."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

from starlette.websockets import WebSocket, WebSocketState

logger = logging.getLogger(__name__)


@dataclass
class ConnectionSession:
    """Per-connection state; lives only as long as the transport."""

    display_name: str | None = None
    selected_date: date | None = None

    @property
    def identified(self) -> bool:
        return bool(self.display_name)


def is_open(websocket: WebSocket) -> bool:
    return (
        websocket.client_state == WebSocketState.CONNECTED
        and websocket.application_state == WebSocketState.CONNECTED
    )


class ConnectionRegistry:
    """Tracks admitted connections for identity checks and broadcast."""

    def __init__(self) -> None:
        self._sessions: dict[WebSocket, ConnectionSession] = {}

    def admit(self, websocket: WebSocket) -> ConnectionSession:
        session = self._sessions.setdefault(websocket, ConnectionSession())
        logger.info(f"Client connected ({len(self._sessions)} online)")
        return session

    def identify(self, websocket: WebSocket, name: str) -> ConnectionSession:
        """Bind a display name. Admits the connection if it was not yet tracked."""
        if not name or not name.strip():
            raise ValueError("display name must not be empty")
        session = self._sessions.setdefault(websocket, ConnectionSession())
        session.display_name = name.strip()
        logger.info(f"Client identified as '{session.display_name}'")
        return session

    def session(self, websocket: WebSocket) -> ConnectionSession | None:
        return self._sessions.get(websocket)

    def is_identified(self, websocket: WebSocket) -> bool:
        session = self._sessions.get(websocket)
        return session is not None and session.identified

    def display_name(self, websocket: WebSocket) -> str | None:
        session = self._sessions.get(websocket)
        return session.display_name if session else None

    def forget(self, websocket: WebSocket) -> None:
        """Remove a connection. Safe to call more than once."""
        if self._sessions.pop(websocket, None) is not None:
            logger.info(f"Client disconnected ({len(self._sessions)} online)")

    async def send(self, websocket: WebSocket, payload: dict[str, Any]) -> bool:
        """Send to one connection; a closed or failing transport is skipped."""
        if not is_open(websocket):
            return False
        try:
            await websocket.send_json(payload)
            return True
        except Exception as e:
            logger.debug(f"Dropped frame for closing client: {type(e).__name__}: {e}")
            return False

    async def broadcast(self, payload: dict[str, Any]) -> int:
        """Deliver ``payload`` to every open connection. Returns the delivery count."""
        targets = [ws for ws in list(self._sessions) if is_open(ws)]
        if not targets:
            return 0
        results = await asyncio.gather(*(self.send(ws, payload) for ws in targets))
        return sum(results)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, websocket: object) -> bool:
        return websocket in self._sessions
