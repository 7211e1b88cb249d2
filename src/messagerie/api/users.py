"""User presence endpoints."""

from fastapi import APIRouter

from .deps import PresenceRepositoryDep
from .models import (
    ApiResponse,
    ConnectionRequest,
    OnlineUsersPayload,
    PresencePayload,
)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("/connect")
async def connect_user(
    body: ConnectionRequest,
    presence: PresenceRepositoryDep,
) -> ApiResponse[PresencePayload]:
    await presence.update_connection_status(body.username, True)
    return ApiResponse.ok(PresencePayload(username=body.username, is_online=True))


@router.post("/disconnect")
async def disconnect_user(
    body: ConnectionRequest,
    presence: PresenceRepositoryDep,
) -> ApiResponse[PresencePayload]:
    await presence.update_connection_status(body.username, False)
    return ApiResponse.ok(PresencePayload(username=body.username, is_online=False))


@router.get("/online")
async def online_users(
    presence: PresenceRepositoryDep,
) -> ApiResponse[OnlineUsersPayload]:
    """Usernames currently flagged online; empty when the database is down."""
    users = await presence.get_online_users()
    return ApiResponse.ok(OnlineUsersPayload(users=users, count=len(users)))


@router.get("/status/{username}")
async def user_status(
    username: str,
    presence: PresenceRepositoryDep,
) -> ApiResponse[PresencePayload]:
    is_online = await presence.is_user_online(username)
    return ApiResponse.ok(PresencePayload(username=username, is_online=is_online))
