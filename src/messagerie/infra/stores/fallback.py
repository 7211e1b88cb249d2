"""Fallback profile store over the relational ``compte_compte`` table."""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from messagerie.configs.system import BioField
from messagerie.core.errors import EnrichmentUnavailable
from messagerie.core.models import ProfileFragment, to_bio_value
from messagerie.core.ports import FallbackProfileStore

from .constants import COL_FIRST_NAME, COL_PHOTO, PARAM_USERNAME, sql_select_profile

logger = logging.getLogger(__name__)


class PgFallbackProfileStore(FallbackProfileStore):
    """One parameterised lookup per username.

    Shares the pooled session factory across requests; every lookup
    opens its own session so concurrent calls never contend on one
    connection.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        bio_field: BioField,
    ) -> None:
        self._session_factory = session_factory
        self._bio_field = bio_field
        self._query = text(sql_select_profile(bio_field))

    async def get_profile_by_username(self, username: str) -> ProfileFragment | None:
        try:
            async with self._session_factory() as session:
                result = await session.execute(self._query, {PARAM_USERNAME: username})
                row = result.mappings().first()
        except Exception as exc:
            raise EnrichmentUnavailable(
                f"Fallback profile lookup failed for {username}: {exc}"
            ) from exc

        if row is None:
            return None

        first_name = row.get(COL_FIRST_NAME)
        photo = row.get(COL_PHOTO)
        return ProfileFragment(
            username=username,
            first_name=str(first_name) if first_name is not None else None,
            bio=to_bio_value(row.get(self._bio_field)),
            photo=str(photo) if photo is not None else None,
        )
