from __future__ import annotations

import asyncio
import random
from typing import Any, List, Optional

# ---------- Lobby rules ----------
MIN_PLAYERS = 10
COUNTDOWN_MS = 20_000
TICK_MS = 1000
SWEEP_MS = 15_000
RESET_WINDOW_MS = 30_000
MAX_RESETS = 3
FAILSAFE_MS = 10_000
CLIENT_TICK_RATE = 30
WORLD = {"w": 8000, "h": 8000}
MAX_NAME = 16
MAX_WALLET = 64

WAITING = "WAITING"
COUNTDOWN = "COUNTDOWN"
IN_MATCH = "IN_MATCH"


def short_wallet(wallet: Optional[str]) -> str:
  """Render a wallet as 'abc…xyz' once it is longer than 8 characters."""
  if wallet and len(wallet) > 8:
    return f"{wallet[:3]}…{wallet[-3:]}"
  return wallet or ""


class Session:

  def __init__(self, session_id: str, ws: Any):
    self.session_id = session_id
    self.ws = ws  # owned by the registry entry
    self.username: Optional[str] = None
    self.wallet: Optional[str] = None
    # set on inbound traffic, cleared by each liveness sweep
    self.is_alive = True
    # FIFO, keeps fire-and-forget sends to this socket in order
    self.send_lock = asyncio.Lock()

  def set_identity(self, username: Any, wallet: Any):
    self.username = str(username or "")[:MAX_NAME]
    self.wallet = str(wallet or "")[:MAX_WALLET]


class LobbyState:

  def __init__(self):
    self.status = WAITING  # WAITING | COUNTDOWN | IN_MATCH
    self.countdown_ms: float = 0
    self.last_player_count = 0
    # ms timestamps of countdown resets, oldest first
    self.reset_timestamps: List[float] = []
    self.rng = random.Random()

  def to_wait(self):
    self.status = WAITING
    self.countdown_ms = 0
