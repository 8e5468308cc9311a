from __future__ import annotations

import asyncio
import logging
from typing import Optional

from domain.lobby import tick_lobby
from domain.models import SWEEP_MS, TICK_MS, Session
from realtime.utils import broadcast_lobby, broadcast_match_start, now_ms
from state import LobbyHub, is_open

logger = logging.getLogger(__name__)


async def run_tick(hub: LobbyHub, dt: float = TICK_MS,
                   now: Optional[float] = None):
  """One lobby tick: advance the countdown, broadcast, then prune."""
  now = now_ms() if now is None else now
  async with hub.lock:
    changed, seed = tick_lobby(hub.lobby, hub.live_count(), dt, now)
    if seed is not None:
      broadcast_match_start(hub, seed)
    if changed:
      broadcast_lobby(hub)
    hub.registry.prune()


def probe(session: Session):
  """Readiness check, never visible to the client.

  Transport-level pings come from uvicorn (``ws_ping_interval``); a socket
  they find dead stops being open and is dropped by the next sweep.
  """
  if not session.is_alive:
    logger.debug("no traffic from %s since last sweep", session.session_id)
  session.is_alive = False


async def sweep(hub: LobbyHub):
  """Drop closed sockets and mark the rest for the next sweep."""
  async with hub.lock:
    for session in hub.registry.all():
      if not is_open(session.ws):
        hub.registry.remove(session.session_id)
        logger.debug("swept dead session %s", session.session_id)
        continue
      probe(session)


async def lobby_ticker(hub: LobbyHub):
  while True:
    await asyncio.sleep(TICK_MS / 1000)
    try:
      await run_tick(hub)
    except Exception:
      logger.exception("lobby tick failed")


async def liveness_sweeper(hub: LobbyHub):
  while True:
    await asyncio.sleep(SWEEP_MS / 1000)
    try:
      await sweep(hub)
    except Exception:
      logger.exception("liveness sweep failed")
