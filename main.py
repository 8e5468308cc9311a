import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# REST routes
from api.routes import router as api_router
from config import get_settings
from domain.models import SWEEP_MS
from realtime.endpoints import ws_endpoint
from realtime.ticker import liveness_sweeper, lobby_ticker
from state import LobbyHub

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    hub: LobbyHub = app.state.hub
    tasks = [
        asyncio.create_task(lobby_ticker(hub)),
        asyncio.create_task(liveness_sweeper(hub)),
    ]
    logger.info("%s %s: lobby timers started", settings.APP_NAME, settings.VERSION)
    yield
    # abrupt shutdown: no drain, just stop the timers
    for task in tasks:
        task.cancel()


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.APP_NAME, version=settings.VERSION,
                  lifespan=lifespan)
    app.state.hub = LobbyHub()

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- REST (health + banner) ---
    app.include_router(api_router)

    # --- WebSockets ---
    app.add_api_websocket_route("/ws", ws_endpoint)
    return app


app = create_app()

# --- Dev runner ---
# PORT and the transport ping interval only apply here; with the uvicorn CLI
# pass them yourself: uvicorn main:app --port 8787 --ws-ping-interval 15
if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        ws_ping_interval=SWEEP_MS / 1000,
    )
