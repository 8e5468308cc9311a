# api/routes.py
from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def index():
    return "lobby ws server ok\n"


@router.get("/health")
async def health(request: Request):
    """
    Status probe for external monitoring, not part of the game protocol.
    """
    return request.app.state.hub.health()
