"""Relational profile database: **leaf module**.

``build_profile_db`` is a lifespan dependency: it creates the async
engine + session factory, probes the connection once, and records the
outcome on ``app.state``:

* ``app.state.profile_engine``: the engine, or ``None``
* ``app.state.profile_sessions``: the ``async_sessionmaker``, or ``None``
* ``app.state.fallback``: a ``PgFallbackProfileStore`` when the probe
  succeeded, otherwise ``FallbackUnavailable``

The database is optional: an empty URI or a failed probe degrades the
service (no fallback enrichment, presence reads return defaults) instead
of aborting startup.  The probe is never repeated per request.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, FastAPI, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from messagerie.configs.config import AppConfig, get_app_config
from messagerie.core.ports import FallbackCapability, FallbackUnavailable
from messagerie.infra.lifespan import get_app
from messagerie.infra.stores.fallback import PgFallbackProfileStore

logger = logging.getLogger(__name__)

_PROBE_SQL = "SELECT 1"


def _create_engine(config: AppConfig) -> AsyncEngine:
    tp = config.third_party
    timeout = tp.postgres_connect_timeout_seconds
    return create_async_engine(
        tp.postgres_uri,
        pool_pre_ping=True,
        pool_size=tp.postgres_pool_size,
        max_overflow=tp.postgres_max_overflow,
        connect_args={"timeout": timeout, "command_timeout": timeout},
    )


async def build_profile_db(
    app: Annotated[FastAPI, Depends(get_app)],
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> AsyncGenerator[None, None]:
    """Connect the optional profile database and publish the capability."""
    app.state.profile_engine = None
    app.state.profile_sessions = None

    if not config.third_party.postgres_uri:
        app.state.fallback = FallbackUnavailable("profile database not configured")
        logger.info("Profile database not configured -- fallback enrichment off.")
        yield
        return

    engine = _create_engine(config)
    try:
        async with engine.connect() as conn:
            await conn.execute(text(_PROBE_SQL))
    except Exception as exc:
        await engine.dispose()
        app.state.fallback = FallbackUnavailable(f"profile database unreachable: {exc}")
        logger.warning(
            "Profile database unavailable -- fallback enrichment disabled.",
            exc_info=True,
        )
        yield
        return

    sessions: async_sessionmaker[AsyncSession] = async_sessionmaker(
        engine, expire_on_commit=False
    )
    app.state.profile_engine = engine
    app.state.profile_sessions = sessions
    app.state.fallback = PgFallbackProfileStore(
        sessions, bio_field=config.stores.bio_field
    )
    logger.info("Profile database connected.")
    yield
    await engine.dispose()


# ---------------------------------------------------------------------------
# Per-request dependencies: read from app.state
# ---------------------------------------------------------------------------


def get_fallback_capability(request: Request) -> FallbackCapability:
    """Return the fallback store, or the ``FallbackUnavailable`` marker."""
    return request.app.state.fallback


def get_profile_sessions(
    request: Request,
) -> async_sessionmaker[AsyncSession] | None:
    """Return the profile database session factory, ``None`` when offline."""
    return request.app.state.profile_sessions
