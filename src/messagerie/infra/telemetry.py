"""OpenTelemetry bootstrap: tracing initialisation and helpers.

Configures a ``TracerProvider`` with an OTLP HTTP exporter when tracing is
enabled via ``TracingConfig``.  When disabled the module is a graceful no-op
(local dev without a collector).

Auto-instrumentations wired here:

- **FastAPI** (inbound HTTP spans)
- **SQLAlchemy** (fallback profile database spans)

``init_telemetry`` runs while the app is built (the FastAPI instrumentor
adds middleware).  ``build_telemetry`` is a lifespan dependency that
``Depends(build_profile_db)`` so the relational engine, when connected,
exists before SQLAlchemy instrumentation.

Usage::

    from messagerie.infra.telemetry import SPAN_CONVERSATIONS_AGGREGATE, tracer

    with tracer.start_as_current_span(SPAN_CONVERSATIONS_AGGREGATE) as span:
        ...
"""

from __future__ import annotations

import base64
import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, FastAPI
from opentelemetry import trace
from opentelemetry.trace import format_trace_id

from messagerie.configs.system import TracingConfig
from messagerie.infra.lifespan import get_app
from messagerie.infra.profile_db import build_profile_db

logger = logging.getLogger(__name__)

_otel_enabled = False

tracer = trace.get_tracer("messagerie")

# ---------------------------------------------------------------------------
# Span names
# ---------------------------------------------------------------------------

SPAN_CONVERSATIONS_AGGREGATE = "conversations.aggregate"
SPAN_CONVERSATIONS_PRIMARY = "conversations.enrich_primary"
SPAN_CONVERSATIONS_FALLBACK = "conversations.enrich_fallback"
SPAN_HISTORY_READ = "messages.history"
SPAN_CONVERSATION_READ = "messages.conversation"

# ---------------------------------------------------------------------------
# Span attribute keys
# ---------------------------------------------------------------------------

ATTR_USER = "messages.user"
ATTR_LIMIT = "messages.limit"
ATTR_MESSAGE_COUNT = "messages.count"
ATTR_COUNTERPART_COUNT = "conversations.counterpart_count"
ATTR_PRIMARY_MATCHES = "conversations.primary_matches"
ATTR_FALLBACK_LOOKUPS = "conversations.fallback_lookups"
ATTR_FALLBACK_AVAILABLE = "conversations.fallback_available"


def init_telemetry(
    app: object | None = None,
    settings: TracingConfig | None = None,
) -> None:
    """Initialise the OTEL ``TracerProvider`` and auto-instrumentations.

    No-op when *settings* is ``None`` or tracing is disabled.
    """
    global _otel_enabled  # noqa: PLW0603

    if settings is None or not settings.enabled:
        logger.info("OpenTelemetry tracing disabled.")
        return

    if not settings.endpoint or not settings.username or not settings.password:
        logger.warning(
            "Tracing enabled but endpoint/credentials not configured, "
            "skipping OpenTelemetry setup."
        )
        return

    from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
        OTLPSpanExporter,
    )
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor
    from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

    resource = Resource.create({"service.name": settings.service_name})

    sampler = ParentBased(root=TraceIdRatioBased(settings.sample_rate))
    provider = TracerProvider(resource=resource, sampler=sampler)

    credentials = f"{settings.username}:{settings.password}"
    encoded = base64.b64encode(credentials.encode()).decode()
    headers = {"Authorization": f"Basic {encoded}"}

    exporter = OTLPSpanExporter(
        endpoint=settings.endpoint,
        headers=headers,
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    if app is not None:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

        excluded = ",".join(settings.excluded_urls) if settings.excluded_urls else ""
        FastAPIInstrumentor.instrument_app(app, excluded_urls=excluded)

    _otel_enabled = True
    logger.info(
        "OpenTelemetry tracing initialised (service=%s).", settings.service_name
    )


def instrument_sqlalchemy(engine: object | None) -> None:
    """Instrument the profile database engine, if any, for DB spans.

    No-op when OTEL is not enabled or the database is not connected.
    """
    if not _otel_enabled or engine is None:
        return

    from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

    sync_engine = getattr(engine, "sync_engine", engine)
    SQLAlchemyInstrumentor().instrument(engine=sync_engine)
    logger.info("SQLAlchemy engine instrumented for OTEL tracing.")


def get_current_trace_id() -> str | None:
    """Return the active OTEL trace ID as a 32-char hex string, or ``None``."""
    span = trace.get_current_span()
    ctx = span.get_span_context()
    if ctx is None or not ctx.is_valid:
        return None
    return format_trace_id(ctx.trace_id)


# ---------------------------------------------------------------------------
# Lifespan dependency
# ---------------------------------------------------------------------------


async def build_telemetry(
    app: Annotated[FastAPI, Depends(get_app)],
    _db: Annotated[None, Depends(build_profile_db)],
) -> AsyncGenerator[None, None]:
    """Instrument the profile database engine once it exists."""
    instrument_sqlalchemy(app.state.profile_engine)
    yield
