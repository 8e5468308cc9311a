from __future__ import annotations

import asyncio
import uuid
from typing import Any, Dict, List, Set

from fastapi.websockets import WebSocketState

from domain.models import LobbyState, Session, short_wallet


# ---- ID generators ----
def gen_session_id() -> str:
    """Generate an opaque session id (random UUID4)."""
    return str(uuid.uuid4())


def is_open(ws: Any) -> bool:
    """True while both ends of the socket are still connected."""
    return (
        ws.client_state == WebSocketState.CONNECTED
        and ws.application_state == WebSocketState.CONNECTED
    )


# ---- Connections / sessions ----
class Registry:
    """Session id -> Session. Sole owner of session lifetime."""

    def __init__(self):
        self._sessions: Dict[str, Session] = {}

    def add(self, ws: Any) -> Session:
        session = Session(gen_session_id(), ws)
        self._sessions[session.session_id] = session
        return session

    def remove(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def get(self, session_id: str):
        return self._sessions.get(session_id)

    def all(self) -> List[Session]:
        # snapshot so callers may remove while iterating
        return list(self._sessions.values())

    def prune(self) -> List[str]:
        """Drop sessions whose socket is no longer open; returns their ids."""
        dead = [s.session_id for s in self.all() if not is_open(s.ws)]
        for session_id in dead:
            self.remove(session_id)
        return dead

    def __len__(self) -> int:
        return len(self._sessions)


# ---- Presence ----
def live_count(registry: Registry) -> int:
    return sum(1 for s in registry.all() if is_open(s.ws))


def roster(registry: Registry) -> List[dict]:
    return [
        {"id": s.session_id, "u": s.username or "anon", "w": short_wallet(s.wallet)}
        for s in registry.all()
    ]


# ---- Lobby hub ----
class LobbyHub:
    """Registry and lobby state as one unit.

    Every mutation of either runs, and the broadcast that follows it is
    scheduled, while holding ``lock``, so connection handlers and the
    background timers never interleave.
    """

    def __init__(self):
        self.registry = Registry()
        self.lobby = LobbyState()
        self.lock = asyncio.Lock()
        # in-flight fire-and-forget sends
        self.tasks: Set[asyncio.Task] = set()

    def live_count(self) -> int:
        return live_count(self.registry)

    def roster(self) -> List[dict]:
        return roster(self.registry)

    def health(self) -> dict:
        return {
            "ok": True,
            "status": self.lobby.status,
            "players": self.live_count(),
            "countdownMs": self.lobby.countdown_ms,
        }
