from __future__ import annotations

import json
import logging

from fastapi import WebSocket, WebSocketDisconnect

from domain.lobby import on_disconnect, on_player_join
from domain.models import CLIENT_TICK_RATE, Session
from realtime.utils import broadcast_lobby, now_ms, send
from state import LobbyHub

logger = logging.getLogger(__name__)


async def receive_frame(ws: WebSocket) -> str:
  """Next text payload; binary frames are decoded as UTF-8."""
  message = await ws.receive()
  if message["type"] == "websocket.disconnect":
    raise WebSocketDisconnect(message.get("code", 1000))
  if message.get("text") is not None:
    return message["text"]
  return (message.get("bytes") or b"").decode("utf-8", "replace")


async def handle_message(hub: LobbyHub, session: Session, msg: dict):
  mtype = msg.get("type")

  if mtype == "ping":
    send(hub, session, {"type": "pong", "t": now_ms()})

  elif mtype == "hello":
    async with hub.lock:
      if hub.registry.get(session.session_id) is None:
        return
      session.set_identity(msg.get("username"), msg.get("wallet"))
      on_player_join(hub.lobby, hub.live_count(), now_ms())
      broadcast_lobby(hub)

  elif mtype == "req_lobby":
    async with hub.lock:
      broadcast_lobby(hub)

  else:
    # input, spectate_target, ... are handled client-side
    logger.debug("ignoring %r from %s", mtype, session.session_id)


async def ws_endpoint(ws: WebSocket):
  hub: LobbyHub = ws.app.state.hub
  await ws.accept()

  async with hub.lock:
    session = hub.registry.add(ws)
    logger.info("session %s connected (%d live)", session.session_id,
                hub.live_count())
    send(
        hub, session, {
            "type": "welcome",
            "playerId": session.session_id,
            "serverTime": now_ms(),
            "tickRate": CLIENT_TICK_RATE
        })
    broadcast_lobby(hub)

  try:
    while True:
      raw = await receive_frame(ws)
      session.is_alive = True
      try:
        msg = json.loads(raw)
      except (ValueError, RecursionError):
        logger.debug("dropping malformed frame from %s", session.session_id)
        continue
      if not isinstance(msg, dict):
        continue
      await handle_message(hub, session, msg)

  except WebSocketDisconnect:
    pass
  except Exception:
    logger.warning("transport error on %s", session.session_id, exc_info=True)
  finally:
    async with hub.lock:
      hub.registry.remove(session.session_id)
      count = hub.live_count()
      logger.info("session %s disconnected (%d live)", session.session_id,
                  count)
      if on_disconnect(hub.lobby, count):
        broadcast_lobby(hub)
