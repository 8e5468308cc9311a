from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from domain.models import COUNTDOWN, WORLD, Session
from state import LobbyHub, is_open

logger = logging.getLogger(__name__)


def now_ms() -> int:
  return int(time.time() * 1000)


async def send_json_safe(ws: Any, payload: dict):
  try:
    await ws.send_json(payload)
  except Exception as exc:
    logger.debug("send failed: %r", exc)


async def _deliver(session: Session, payload: dict):
  async with session.send_lock:
    await send_json_safe(session.ws, payload)


def send(hub: LobbyHub, session: Session, payload: dict):
  """Queue a frame for one session without waiting on its socket."""
  task = asyncio.create_task(_deliver(session, payload))
  hub.tasks.add(task)
  task.add_done_callback(hub.tasks.discard)


def broadcast(hub: LobbyHub, payload: dict):
  for session in hub.registry.all():
    if is_open(session.ws):
      send(hub, session, payload)


def lobby_state_payload(hub: LobbyHub) -> dict:
  lobby = hub.lobby
  payload = {
      "type": "lobby_update",
      "status": lobby.status,
      "players": hub.roster(),
  }
  if lobby.status == COUNTDOWN:
    payload["countdownMs"] = max(0, round(lobby.countdown_ms))
  return payload


def broadcast_lobby(hub: LobbyHub):
  broadcast(hub, lobby_state_payload(hub))


def broadcast_match_start(hub: LobbyHub, seed: int):
  broadcast(hub, {"type": "match_start", "seed": seed, "world": WORLD})

