"""Per-request dependency factories for the store adapters.

Adapters are cheap wrappers around the shared Motor database and the
pooled SQLAlchemy session factory, so one is built per request.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from messagerie.configs.config import get_stores_config
from messagerie.configs.system import StoresConfig
from messagerie.core.ports import MessageStore, ProfileStore
from messagerie.infra.mongo import get_mongo_database
from messagerie.infra.profile_db import get_profile_sessions

from .messages import MongoMessageStore
from .profiles import MongoProfileStore
from .users import UserPresenceRepository


def get_message_store(
    db: Annotated[AsyncIOMotorDatabase, Depends(get_mongo_database)],
    stores: Annotated[StoresConfig, Depends(get_stores_config)],
) -> MessageStore:
    """Return the message store bound to the configured collection."""
    return MongoMessageStore(
        db, stores.messages_collection, stats_collections=stores.stats_collections
    )


def get_profile_store(
    db: Annotated[AsyncIOMotorDatabase, Depends(get_mongo_database)],
    stores: Annotated[StoresConfig, Depends(get_stores_config)],
) -> ProfileStore:
    """Return the primary profile store."""
    return MongoProfileStore(db[stores.profiles_collection], stores.bio_field)


def get_presence_repository(
    sf: Annotated[
        async_sessionmaker[AsyncSession] | None,
        Depends(get_profile_sessions),
    ],
) -> UserPresenceRepository:
    """Return the presence repository (works offline with defaults)."""
    return UserPresenceRepository(sf)
