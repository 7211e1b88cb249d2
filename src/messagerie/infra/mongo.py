"""MongoDB client lifespan dependency.

``build_mongo`` creates the Motor client, pings the server, and attaches
the client and database handle to ``app.state``.  The message store is
mandatory: an unreachable server at startup aborts the application.
Downstream per-request dependencies build store adapters from
``app.state.mongo_db``.
"""

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, FastAPI, Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from messagerie.configs.config import AppConfig, get_app_config
from messagerie.infra.lifespan import get_app

logger = logging.getLogger(__name__)


def _redacted(uri: str) -> str:
    """Drop credentials from a connection URI before logging it."""
    return uri.split("@")[-1]


async def build_mongo(
    app: Annotated[FastAPI, Depends(get_app)],
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> AsyncGenerator[None, None]:
    """Connect to MongoDB and expose the database on ``app.state``."""
    tp = config.third_party
    logger.info(
        "Connecting to MongoDB %s / %s", _redacted(tp.mongo_uri), tp.mongo_database
    )
    client: AsyncIOMotorClient = AsyncIOMotorClient(
        tp.mongo_uri,
        serverSelectionTimeoutMS=tp.mongo_server_selection_timeout_ms,
        tz_aware=True,
    )
    try:
        await client.admin.command("ping")
    except Exception:
        logger.error("MongoDB unreachable at startup", exc_info=True)
        client.close()
        raise

    app.state.mongo_client = client
    app.state.mongo_db = client[tp.mongo_database]
    logger.info("MongoDB connection established")
    yield
    client.close()
    logger.info("MongoDB connection closed")


def get_mongo_database(request: Request) -> AsyncIOMotorDatabase:
    """Return the database handle from ``app.state``."""
    return request.app.state.mongo_db
