"""Flat message reads (history, pairwise conversation) and message writes.

Reads fetch newest-first from the store so ``limit`` keeps the most
recent messages, then reverse to chronological order for the caller.
"""

import logging

from messagerie.infra.telemetry import (
    ATTR_LIMIT,
    ATTR_MESSAGE_COUNT,
    ATTR_USER,
    SPAN_CONVERSATION_READ,
    SPAN_HISTORY_READ,
    tracer,
)

from .models import DEFAULT_MESSAGE_TYPE, Message, utc_now_iso
from .ports import MessageStore

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100
MAX_LIMIT = 1000


def parse_limit(raw: object, default: int = DEFAULT_LIMIT) -> int:
    """Positive integer limit, capped at ``MAX_LIMIT``.

    Anything that is not a positive integer falls back to *default*.
    """
    if raw is None or isinstance(raw, bool):
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        return default
    if value <= 0:
        return default
    return min(value, MAX_LIMIT)


class MessageReader:
    """History and conversation views plus the write operations."""

    def __init__(self, store: MessageStore) -> None:
        self._store = store

    async def get_history(self, user: str, limit: int) -> list[Message]:
        """The *limit* most recent messages of *user*, oldest first."""
        with tracer.start_as_current_span(SPAN_HISTORY_READ) as span:
            span.set_attribute(ATTR_USER, user)
            span.set_attribute(ATTR_LIMIT, limit)
            messages = await self._store.list_messages_for(user, limit)
            messages.reverse()
            span.set_attribute(ATTR_MESSAGE_COUNT, len(messages))
        logger.info("History for %s: %d messages", user, len(messages))
        return messages

    async def get_conversation(
        self, user_a: str, user_b: str, limit: int
    ) -> list[Message]:
        """The *limit* most recent messages between the pair, oldest first."""
        with tracer.start_as_current_span(SPAN_CONVERSATION_READ) as span:
            span.set_attribute(ATTR_USER, user_a)
            span.set_attribute(ATTR_LIMIT, limit)
            messages = await self._store.list_messages_between(user_a, user_b, limit)
            messages.reverse()
            span.set_attribute(ATTR_MESSAGE_COUNT, len(messages))
        logger.info(
            "Conversation %s <-> %s: %d messages", user_a, user_b, len(messages)
        )
        return messages

    async def send(
        self,
        sender: str,
        recipient: str,
        content: str,
        message_type: str = DEFAULT_MESSAGE_TYPE,
    ) -> Message:
        message = Message(
            sender=sender,
            recipient=recipient,
            content=content,
            message_type=message_type or DEFAULT_MESSAGE_TYPE,
            timestamp=utc_now_iso(),
        )
        return await self._store.insert(message)

    async def mark_as_read(self, sender: str, recipient: str) -> int:
        return await self._store.mark_as_read(sender, recipient)

    async def delete_conversation(self, user_a: str, user_b: str) -> int:
        return await self._store.delete_between(user_a, user_b)

    async def stats(self) -> dict:
        return await self._store.collection_stats()
