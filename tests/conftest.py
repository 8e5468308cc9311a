import asyncio

import pytest
from fastapi.testclient import TestClient
from fastapi.websockets import WebSocketState

import main
from state import LobbyHub


class FakeSocket:
    """Stands in for a Starlette WebSocket: readiness states plus send_json."""

    def __init__(self, fail=False):
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.fail = fail
        self.sent = []
        # an unset asyncio.Event here makes sends hang like a stalled reader
        self.gate = None

    async def send_json(self, payload):
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise RuntimeError("socket is broken")
        self.sent.append(payload)

    def drop(self):
        self.client_state = WebSocketState.DISCONNECTED

    def types(self):
        return [m["type"] for m in self.sent]


@pytest.fixture()
def hub():
    return LobbyHub()


@pytest.fixture()
def add_sockets(hub):
    def _add(n, **kwargs):
        return [hub.registry.add(FakeSocket(**kwargs)) for _ in range(n)]
    return _add


async def _idle(hub):
    await asyncio.Event().wait()


@pytest.fixture()
def app(monkeypatch):
    # timers are driven explicitly in tests
    monkeypatch.setattr(main, "lobby_ticker", _idle)
    monkeypatch.setattr(main, "liveness_sweeper", _idle)
    return main.create_app()


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def receive_until(ws, mtype):
    """Read frames until one of type ``mtype`` arrives; returns it."""
    while True:
        msg = ws.receive_json()
        if msg["type"] == mtype:
            return msg


async def flush(hub):
    """Wait until every queued send has been attempted."""
    while hub.tasks:
        await asyncio.gather(*list(hub.tasks))
