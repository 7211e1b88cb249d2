"""Conversation summary aggregation.

Builds a user's conversation list in four steps:

1. **fold** the user's message stream (chronological, as guaranteed by
   ``MessageStore.list_messages_involving``) into one summary per
   counterpart, the last scanned message winning;
2. **primary enrichment**: copy profile fields from the primary store,
   overwriting;
3. **fallback enrichment**: when the fallback store is present, fill the
   fields that are still empty, never overwriting;
4. **sort** by last message timestamp, newest first, comparing the ISO-8601
   strings lexicographically.

Only a failed message scan fails the request.  Enrichment problems are
logged and leave fields empty.
"""

import asyncio
import logging
import time
from collections.abc import Iterable

from messagerie.infra.telemetry import (
    ATTR_COUNTERPART_COUNT,
    ATTR_FALLBACK_AVAILABLE,
    ATTR_FALLBACK_LOOKUPS,
    ATTR_MESSAGE_COUNT,
    ATTR_PRIMARY_MATCHES,
    ATTR_USER,
    SPAN_CONVERSATIONS_AGGREGATE,
    SPAN_CONVERSATIONS_FALLBACK,
    SPAN_CONVERSATIONS_PRIMARY,
    tracer,
)

from .errors import EnrichmentUnavailable, StoreUnavailable
from .metrics import (
    AGGREGATION_COUNTERPARTS,
    AGGREGATION_DURATION_SECONDS,
    AGGREGATIONS_TOTAL,
    ENRICHMENT_LOOKUPS_TOTAL,
)
from .models import EMPTY, ConversationSummary, Message, ProfileFragment
from .ports import (
    FallbackCapability,
    FallbackProfileStore,
    FallbackUnavailable,
    MessageStore,
    ProfileStore,
)

logger = logging.getLogger(__name__)

SOURCE_PRIMARY = "primary"
SOURCE_FALLBACK = "fallback"


def fold_conversations(
    user: str, messages: Iterable[Message]
) -> dict[str, ConversationSummary]:
    """Reduce *messages* to one summary per counterpart.

    The last message scanned for a counterpart sets ``last_message`` and
    ``last_message_timestamp``; no timestamp comparison is made, so the
    input order decides.  The returned dict keeps first-sighting order.
    """
    summaries: dict[str, ConversationSummary] = {}
    for message in messages:
        counterpart = message.counterpart_of(user)
        summary = summaries.get(counterpart)
        if summary is None:
            summaries[counterpart] = ConversationSummary(
                counterpart_username=counterpart,
                last_message=message.content,
                last_message_timestamp=message.timestamp,
            )
        else:
            summary.last_message = message.content
            summary.last_message_timestamp = message.timestamp
    return summaries


def _or_empty(value):
    return EMPTY if value is None else value


def apply_primary(
    summaries: dict[str, ConversationSummary],
    fragments: Iterable[ProfileFragment],
) -> int:
    """Overwrite profile fields from primary fragments; return matches."""
    matched = 0
    for fragment in fragments:
        summary = summaries.get(fragment.username)
        if summary is None:
            continue
        summary.first_name = _or_empty(fragment.first_name)
        summary.bio = _or_empty(fragment.bio)
        summary.photo = _or_empty(fragment.photo)
        matched += 1
    return matched


def apply_fallback(summary: ConversationSummary, fragment: ProfileFragment) -> None:
    """Fill each still-empty field from a non-null fallback value."""
    if summary.first_name == EMPTY and fragment.first_name is not None:
        summary.first_name = fragment.first_name
    if summary.bio == EMPTY and fragment.bio is not None:
        summary.bio = fragment.bio
    if summary.photo == EMPTY and fragment.photo is not None:
        summary.photo = fragment.photo


def sort_summaries(
    summaries: Iterable[ConversationSummary],
) -> list[ConversationSummary]:
    """Newest conversation first; equal timestamps keep their input order."""
    return sorted(
        summaries, key=lambda s: s.last_message_timestamp, reverse=True
    )


class ConversationAggregator:
    """Builds enriched, ordered conversation summaries for one user."""

    def __init__(
        self,
        messages: MessageStore,
        profiles: ProfileStore,
        fallback: FallbackCapability,
    ) -> None:
        self._messages = messages
        self._profiles = profiles
        self._fallback = fallback

    async def list_conversations(self, user: str) -> list[ConversationSummary]:
        """Return *user*'s conversation summaries, newest first.

        Raises:
            StoreUnavailable: when the message scan fails.
        """
        start = time.monotonic()
        with tracer.start_as_current_span(SPAN_CONVERSATIONS_AGGREGATE) as span:
            span.set_attribute(ATTR_USER, user)
            try:
                messages = await self._messages.list_messages_involving(user)
            except StoreUnavailable:
                AGGREGATIONS_TOTAL.labels(status="error").inc()
                logger.error("Message scan failed for %s", user)
                raise
            span.set_attribute(ATTR_MESSAGE_COUNT, len(messages))

            summaries = fold_conversations(user, messages)
            span.set_attribute(ATTR_COUNTERPART_COUNT, len(summaries))

            await self._enrich_from_primary(user, summaries)
            await self._enrich_from_fallback(summaries)

            result = sort_summaries(summaries.values())

        AGGREGATIONS_TOTAL.labels(status="ok").inc()
        AGGREGATION_COUNTERPARTS.observe(len(result))
        AGGREGATION_DURATION_SECONDS.observe(time.monotonic() - start)
        logger.info(
            "Built %d conversation summaries for %s from %d messages",
            len(result),
            user,
            len(messages),
        )
        return result

    async def _enrich_from_primary(
        self, user: str, summaries: dict[str, ConversationSummary]
    ) -> None:
        if not summaries:
            return
        with tracer.start_as_current_span(SPAN_CONVERSATIONS_PRIMARY) as span:
            try:
                fragments = await self._profiles.get_known_counterparts(user)
            except StoreUnavailable:
                ENRICHMENT_LOOKUPS_TOTAL.labels(
                    source=SOURCE_PRIMARY, result="error"
                ).inc()
                logger.warning(
                    "Primary profile lookup failed for %s", user, exc_info=True
                )
                return
            matched = apply_primary(summaries, fragments)
            span.set_attribute(ATTR_PRIMARY_MATCHES, matched)
            ENRICHMENT_LOOKUPS_TOTAL.labels(
                source=SOURCE_PRIMARY, result="hit" if matched else "miss"
            ).inc()

    async def _enrich_from_fallback(
        self, summaries: dict[str, ConversationSummary]
    ) -> None:
        incomplete = [s for s in summaries.values() if s.missing_fields()]
        if not incomplete:
            return

        fallback = self._fallback
        if isinstance(fallback, FallbackUnavailable):
            ENRICHMENT_LOOKUPS_TOTAL.labels(
                source=SOURCE_FALLBACK, result="skipped"
            ).inc(len(incomplete))
            logger.debug(
                "Fallback store absent (%s); %d summaries stay incomplete",
                fallback.reason,
                len(incomplete),
            )
            return

        with tracer.start_as_current_span(SPAN_CONVERSATIONS_FALLBACK) as span:
            span.set_attribute(ATTR_FALLBACK_AVAILABLE, True)
            span.set_attribute(ATTR_FALLBACK_LOOKUPS, len(incomplete))
            await asyncio.gather(
                *(self._fill_one(fallback, summary) for summary in incomplete)
            )

    async def _fill_one(
        self, fallback: FallbackProfileStore, summary: ConversationSummary
    ) -> None:
        username = summary.counterpart_username
        try:
            fragment = await fallback.get_profile_by_username(username)
        except EnrichmentUnavailable:
            ENRICHMENT_LOOKUPS_TOTAL.labels(
                source=SOURCE_FALLBACK, result="error"
            ).inc()
            logger.warning("Fallback lookup failed for %s", username, exc_info=True)
            return
        if fragment is None:
            ENRICHMENT_LOOKUPS_TOTAL.labels(source=SOURCE_FALLBACK, result="miss").inc()
            return
        apply_fallback(summary, fragment)
        ENRICHMENT_LOOKUPS_TOTAL.labels(source=SOURCE_FALLBACK, result="hit").inc()
