"""Lobby countdown state machine.

Every transition takes the live player count and the current time (ms) from
the caller, so the functions here never touch sockets or clocks themselves.
"""
from __future__ import annotations

import logging
from typing import Optional, Tuple

from domain.models import (COUNTDOWN, COUNTDOWN_MS, FAILSAFE_MS, IN_MATCH,
                           MAX_RESETS, MIN_PLAYERS, RESET_WINDOW_MS,
                           LobbyState)

logger = logging.getLogger(__name__)


def on_player_join(lobby: LobbyState, count: int, now: float):
  """Re-evaluate the lobby after a session completed its handshake."""
  if lobby.status == IN_MATCH:
    # late joiners spectate client-side
    return

  if count < MIN_PLAYERS:
    lobby.to_wait()
  elif lobby.status != COUNTDOWN:
    lobby.status = COUNTDOWN
    lobby.countdown_ms = COUNTDOWN_MS
    lobby.reset_timestamps.clear()
    logger.info("countdown started with %d players", count)
  elif count > lobby.last_player_count:
    lobby.countdown_ms = COUNTDOWN_MS
    lobby.reset_timestamps.append(now)
    logger.info("countdown reset, %d players (%d resets)", count,
                len(lobby.reset_timestamps))
  lobby.last_player_count = count


def tick_lobby(lobby: LobbyState, count: int, dt: float,
               now: float) -> Tuple[bool, Optional[int]]:
  """Advance the countdown by ``dt`` ms.

  Returns ``(changed, seed)``: ``changed`` tells whether the lobby should be
  re-broadcast and ``seed`` is set only on the tick that starts the match.
  """
  if lobby.status != COUNTDOWN:
    return False, None

  if count < MIN_PLAYERS:
    lobby.to_wait()
    logger.info("countdown cancelled, %d players left", count)
    return True, None

  cutoff = now - RESET_WINDOW_MS
  resets = lobby.reset_timestamps
  while resets and resets[0] < cutoff:
    resets.pop(0)
  if len(resets) > MAX_RESETS and lobby.countdown_ms > FAILSAFE_MS:
    lobby.countdown_ms = FAILSAFE_MS
    logger.info("failsafe: %d resets in window, countdown clamped",
                len(resets))

  lobby.countdown_ms -= dt
  if lobby.countdown_ms <= 0:
    lobby.status = IN_MATCH
    lobby.countdown_ms = 0
    seed = lobby.rng.randrange(10**9)
    logger.info("match started with %d players, seed=%d", count, seed)
    return True, seed
  return True, None


def on_disconnect(lobby: LobbyState, count: int) -> bool:
  """Returns whether the lobby should be re-broadcast."""
  if lobby.status == IN_MATCH:
    return False
  if count < MIN_PLAYERS:
    if lobby.status == COUNTDOWN:
      logger.info("countdown cancelled, %d players left", count)
    lobby.to_wait()
  return True
