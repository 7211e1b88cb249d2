"""Prometheus metrics for the messaging service.

Business metrics that complement the auto-instrumented HTTP metrics
provided by ``prometheus-fastapi-instrumentator``.

All metrics use the ``messagerie_`` prefix.
"""

import logging

from fastapi import FastAPI
from prometheus_client import Counter, Histogram
from prometheus_fastapi_instrumentator import Instrumentator

from messagerie.configs.system import TracingConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Conversation aggregation
# ---------------------------------------------------------------------------

AGGREGATIONS_TOTAL = Counter(
    "messagerie_aggregations_total",
    "Conversation summary requests, by outcome",
    ["status"],  # "ok" | "error"
)

AGGREGATION_DURATION_SECONDS = Histogram(
    "messagerie_aggregation_duration_seconds",
    "Duration of one conversation summary aggregation",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5),
)

AGGREGATION_COUNTERPARTS = Histogram(
    "messagerie_aggregation_counterparts",
    "Number of counterparts per conversation summary",
    buckets=(0, 1, 5, 10, 25, 50, 100, 250),
)

ENRICHMENT_LOOKUPS_TOTAL = Counter(
    "messagerie_enrichment_lookups_total",
    "Profile lookups made to enrich summaries",
    # source: primary | fallback; result: hit | miss | error | skipped
    ["source", "result"],
)

# ---------------------------------------------------------------------------
# Store adapters
# ---------------------------------------------------------------------------

MALFORMED_RECORDS_TOTAL = Counter(
    "messagerie_malformed_records_total",
    "Records skipped because required fields were missing",
    ["kind"],  # "message" | "profile"
)

STORE_ERRORS_TOTAL = Counter(
    "messagerie_store_errors_total",
    "Message store operations that failed",
    ["operation"],
)


# ---------------------------------------------------------------------------
# App wiring
# ---------------------------------------------------------------------------


def instrument_metrics(app: FastAPI, tracing: TracingConfig) -> None:
    """Attach the Prometheus HTTP instrumentation and ``/metrics``.

    Must run while the app is being built: Starlette refuses new
    middleware once the application has started.
    """
    Instrumentator(
        should_instrument_requests_inprogress=True,
        excluded_handlers=tracing.excluded_urls,
    ).instrument(app).expose(app, endpoint="/metrics")

    logger.info("Prometheus metrics initialised")
