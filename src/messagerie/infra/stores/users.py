"""Presence tracking over the relational ``compte_compte`` table.

Reads degrade to defaults (empty list, offline) when the database is
down or not connected; writes raise so the caller can report it.
"""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from messagerie.core.errors import ProfileDatabaseUnavailable

from .constants import (
    PARAM_IS_ONLINE,
    PARAM_USERNAME,
    SQL_SELECT_IS_ONLINE,
    SQL_SELECT_ONLINE,
    SQL_UPSERT_CONNECTION,
)

logger = logging.getLogger(__name__)


class UserPresenceRepository:
    """Online/offline status per username."""

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession] | None
    ) -> None:
        self._session_factory = session_factory

    async def update_connection_status(self, username: str, is_online: bool) -> None:
        """Insert or update the user's status and ``last_seen``."""
        if self._session_factory is None:
            raise ProfileDatabaseUnavailable("Profile database is not connected")
        try:
            async with self._session_factory() as session:
                await session.execute(
                    text(SQL_UPSERT_CONNECTION),
                    {PARAM_USERNAME: username, PARAM_IS_ONLINE: is_online},
                )
                await session.commit()
        except Exception as exc:
            logger.warning("Failed to update status of %s", username, exc_info=True)
            raise ProfileDatabaseUnavailable(
                f"Status update failed for {username}: {exc}"
            ) from exc
        logger.info(
            "Status updated: %s -> %s", username, "online" if is_online else "offline"
        )

    async def get_online_users(self) -> list[str]:
        if self._session_factory is None:
            return []
        try:
            async with self._session_factory() as session:
                result = await session.execute(text(SQL_SELECT_ONLINE))
                users = [row[0] for row in result.fetchall()]
        except Exception:
            logger.warning("Failed to list online users", exc_info=True)
            return []
        logger.debug("%d users online", len(users))
        return users

    async def is_user_online(self, username: str) -> bool:
        if self._session_factory is None:
            return False
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    text(SQL_SELECT_IS_ONLINE), {PARAM_USERNAME: username}
                )
                row = result.first()
        except Exception:
            logger.warning("Failed to read status of %s", username, exc_info=True)
            return False
        return bool(row[0]) if row is not None else False
