"""Global exception handlers.

Every failure leaves the API in the same ``ApiResponse`` envelope the
successful routes use.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from messagerie.core.errors import ProfileDatabaseUnavailable, StoreUnavailable
from messagerie.infra.telemetry import get_current_trace_id

from .models import ApiResponse

logger = logging.getLogger(__name__)


def _envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ApiResponse.err(message).model_dump(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register the custom exception handlers on ``app``."""

    @app.exception_handler(StoreUnavailable)
    async def handle_store_unavailable(
        request: Request, exc: StoreUnavailable
    ) -> JSONResponse:
        logger.error(
            "Message store failure on %s (trace=%s): %s",
            request.url.path,
            get_current_trace_id(),
            exc,
        )
        return _envelope(500, f"Erreur: {exc}")

    @app.exception_handler(ProfileDatabaseUnavailable)
    async def handle_profile_db_unavailable(
        request: Request, exc: ProfileDatabaseUnavailable
    ) -> JSONResponse:
        return _envelope(503, str(exc))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        fields = sorted(
            {
                str(err["loc"][-1])
                for err in exc.errors()
                if err.get("loc")
            }
        )
        return _envelope(400, f"Invalid request fields: {', '.join(fields)}")
