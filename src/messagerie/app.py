"""FastAPI application entry point."""

import logging
from typing import Annotated, AsyncGenerator

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from messagerie import __version__
from messagerie.api.exceptions import register_exception_handlers
from messagerie.api.health import router as health_router
from messagerie.api.messages import router as messages_router
from messagerie.api.users import router as users_router
from messagerie.configs.config import get_app_config
from messagerie.core.metrics import instrument_metrics
from messagerie.infra.lifespan import inject
from messagerie.infra.logging import setup_logging
from messagerie.infra.mongo import build_mongo
from messagerie.infra.profile_db import build_profile_db
from messagerie.infra.telemetry import build_telemetry, init_telemetry

logger = logging.getLogger(__name__)


@inject
async def lifespan(
    app: FastAPI,
    _mongo: Annotated[None, Depends(build_mongo)],
    _profile_db: Annotated[None, Depends(build_profile_db)],
    _telemetry: Annotated[None, Depends(build_telemetry)],
) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown events."""
    logger.info("Starting messagerie application...")
    yield
    logger.info("Shutting down messagerie application...")


def get_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    config = get_app_config()
    setup_logging(config.logging)

    app = FastAPI(
        title="Messagerie",
        description="Direct-message history and conversation summaries",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    init_telemetry(app, config.tracing)
    instrument_metrics(app, config.tracing)
    register_exception_handlers(app)

    # Include routers
    app.include_router(health_router)
    app.include_router(messages_router)
    app.include_router(users_router)

    return app


app = get_app()
