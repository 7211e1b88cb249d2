"""Motor-backed message store.

Read paths normalise every document through ``converters`` and skip
malformed ones; any driver error is re-raised as ``StoreUnavailable`` so
callers never see a partial result.
"""

import logging
from typing import Any

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from messagerie.core.errors import MalformedRecord, StoreUnavailable
from messagerie.core.metrics import MALFORMED_RECORDS_TOTAL, STORE_ERRORS_TOTAL
from messagerie.core.models import Message, utc_now_iso
from messagerie.core.ports import MessageStore

from .constants import FIELD_ID, FIELD_READ, FIELD_READ_AT, FIELD_TIMESTAMP
from .converters import (
    between_filter,
    document_to_message,
    involving_filter,
    message_to_document,
    unread_filter,
)

logger = logging.getLogger(__name__)

_CHRONOLOGICAL = [(FIELD_TIMESTAMP, ASCENDING), (FIELD_ID, ASCENDING)]
_NEWEST_FIRST = [(FIELD_TIMESTAMP, DESCENDING), (FIELD_ID, DESCENDING)]


def _normalise(docs: list[dict[str, Any]]) -> list[Message]:
    messages: list[Message] = []
    for doc in docs:
        try:
            messages.append(document_to_message(doc))
        except MalformedRecord as exc:
            MALFORMED_RECORDS_TOTAL.labels(kind=exc.kind).inc()
            logger.warning("Skipping message document: %s", exc)
    return messages


def _most_recent(messages: list[Message], limit: int) -> list[Message]:
    """The *limit* newest messages, newest first, by normalised timestamp.

    BSON dates sort above every string server side, so the limit is applied
    here after normalisation rather than on the cursor.
    """
    newest = sorted(messages, key=lambda m: m.timestamp, reverse=True)
    return newest[:limit]


class MongoMessageStore(MessageStore):
    """Message persistence over the ``messages`` collection."""

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        collection_name: str,
        stats_collections: list[str] | None = None,
    ) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[collection_name]
        self._stats_collections = stats_collections or [collection_name]

    async def _find(
        self,
        query: dict[str, Any],
        sort: list[tuple[str, int]],
    ) -> list[dict[str, Any]]:
        cursor = self._collection.find(query).sort(sort)
        try:
            return await cursor.to_list(length=None)
        except PyMongoError as exc:
            STORE_ERRORS_TOTAL.labels(operation="find").inc()
            raise StoreUnavailable(f"Message store query failed: {exc}") from exc

    async def list_messages_involving(self, user: str) -> list[Message]:
        docs = await self._find(involving_filter(user), _CHRONOLOGICAL)
        # Mixed string / BSON-date timestamps do not sort together server
        # side; a stable sort on the normalised string fixes the order and
        # keeps insertion order among equal timestamps.
        messages = sorted(_normalise(docs), key=lambda m: m.timestamp)
        logger.debug("Scanned %d messages involving %s", len(messages), user)
        return messages

    async def list_messages_for(self, user: str, limit: int) -> list[Message]:
        docs = await self._find(involving_filter(user), _NEWEST_FIRST)
        return _most_recent(_normalise(docs), limit)

    async def list_messages_between(
        self, user_a: str, user_b: str, limit: int
    ) -> list[Message]:
        docs = await self._find(between_filter(user_a, user_b), _NEWEST_FIRST)
        return _most_recent(_normalise(docs), limit)

    async def insert(self, message: Message) -> Message:
        try:
            result = await self._collection.insert_one(message_to_document(message))
        except PyMongoError as exc:
            STORE_ERRORS_TOTAL.labels(operation="insert").inc()
            raise StoreUnavailable(f"Message insert failed: {exc}") from exc
        logger.info("Message stored: %s -> %s", message.sender, message.recipient)
        return message.model_copy(update={"id": str(result.inserted_id)})

    async def mark_as_read(self, sender: str, recipient: str) -> int:
        update = {"$set": {FIELD_READ: True, FIELD_READ_AT: utc_now_iso()}}
        try:
            result = await self._collection.update_many(
                unread_filter(sender, recipient), update
            )
        except PyMongoError as exc:
            STORE_ERRORS_TOTAL.labels(operation="mark_as_read").inc()
            raise StoreUnavailable(f"Marking messages read failed: {exc}") from exc
        logger.info(
            "%d messages %s -> %s marked as read",
            result.modified_count,
            sender,
            recipient,
        )
        return result.modified_count

    async def delete_between(self, user_a: str, user_b: str) -> int:
        try:
            result = await self._collection.delete_many(between_filter(user_a, user_b))
        except PyMongoError as exc:
            STORE_ERRORS_TOTAL.labels(operation="delete").inc()
            raise StoreUnavailable(f"Conversation delete failed: {exc}") from exc
        logger.info(
            "Deleted %d messages between %s and %s",
            result.deleted_count,
            user_a,
            user_b,
        )
        return result.deleted_count

    async def collection_stats(self) -> dict[str, Any]:
        stats: dict[str, Any] = {}
        for name in self._stats_collections:
            try:
                count = await self._database[name].count_documents({})
            except PyMongoError as exc:
                stats[name] = {"error": str(exc)}
            else:
                stats[name] = {"count": count}
        return stats
