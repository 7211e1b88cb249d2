"""Service info and liveness endpoints."""

from fastapi import APIRouter

from messagerie import __version__
from messagerie.core.models import utc_now_iso

SERVICE_NAME = "messagerie"

router = APIRouter(tags=["health"])


@router.get("/")
async def root() -> dict:
    return {
        "service": SERVICE_NAME,
        "version": __version__,
        "endpoints": {
            "history": "/api/messages/history/{username}",
            "conversation": "/api/messages/conversation/{user1}/{user2}",
            "conversations": "/api/messages/conversations/{username}",
            "send": "/api/messages/send",
            "mark_read": "/api/messages/mark-read",
            "online": "/api/users/online",
            "health": "/health",
            "metrics": "/metrics",
        },
    }


@router.get("/health")
async def health() -> dict:
    """Liveness probe; does not touch the stores."""
    return {"status": "OK", "timestamp": utc_now_iso()}
