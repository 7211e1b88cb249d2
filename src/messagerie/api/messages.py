"""Message history, conversation and write endpoints."""

from fastapi import APIRouter

from messagerie.core.models import Message
from messagerie.core.reader import parse_limit

from .deps import APIConfigDep, ConversationAggregatorDep, MessageReaderDep
from .models import (
    ApiResponse,
    ConversationListPayload,
    ConversationPayload,
    DeletePayload,
    HistoryPayload,
    MarkReadPayload,
    MarkReadRequest,
    SendMessageRequest,
)

router = APIRouter(prefix="/api/messages", tags=["messages"])


@router.get("/history/{username}")
async def get_history(
    username: str,
    reader: MessageReaderDep,
    api: APIConfigDep,
    limit: str | None = None,
) -> ApiResponse[HistoryPayload]:
    """The most recent messages sent or received by *username*, oldest first.

    ``limit`` accepts any string; a missing, non-numeric or non-positive
    value uses the configured default.
    """
    messages = await reader.get_history(
        username, parse_limit(limit, api.default_limit)
    )
    return ApiResponse.ok(
        HistoryPayload(username=username, messages=messages, count=len(messages))
    )


@router.get("/conversation/{user1}/{user2}")
async def get_conversation(
    user1: str,
    user2: str,
    reader: MessageReaderDep,
    api: APIConfigDep,
    limit: str | None = None,
) -> ApiResponse[ConversationPayload]:
    """The most recent messages exchanged between two users, oldest first."""
    messages = await reader.get_conversation(
        user1, user2, parse_limit(limit, api.default_limit)
    )
    return ApiResponse.ok(
        ConversationPayload(
            participants=[user1, user2], messages=messages, count=len(messages)
        )
    )


@router.delete("/conversation/{user1}/{user2}")
async def delete_conversation(
    user1: str,
    user2: str,
    reader: MessageReaderDep,
) -> ApiResponse[DeletePayload]:
    deleted = await reader.delete_conversation(user1, user2)
    return ApiResponse.ok(DeletePayload(deleted=deleted))


@router.get("/conversations/{username}")
async def list_conversations(
    username: str,
    aggregator: ConversationAggregatorDep,
) -> ApiResponse[ConversationListPayload]:
    """One summary per counterpart, most recent conversation first.

    Summaries are enriched with the counterpart's display name, bio and
    photo when a profile store knows them; missing values are empty
    strings.
    """
    conversations = await aggregator.list_conversations(username)
    return ApiResponse.ok(
        ConversationListPayload(
            username=username,
            conversations=conversations,
            count=len(conversations),
        )
    )


@router.post("/send")
async def send_message(
    body: SendMessageRequest,
    reader: MessageReaderDep,
) -> ApiResponse[Message]:
    message = await reader.send(
        body.sender, body.recipient, body.content, body.message_type
    )
    return ApiResponse.ok(message)


@router.put("/mark-read")
async def mark_read(
    body: MarkReadRequest,
    reader: MessageReaderDep,
) -> ApiResponse[MarkReadPayload]:
    """Mark every unread message from ``sender`` to ``recipient`` as read."""
    count = await reader.mark_as_read(body.sender, body.recipient)
    return ApiResponse.ok(MarkReadPayload(count=count))


@router.get("/debug/stats")
async def debug_stats(reader: MessageReaderDep) -> ApiResponse[dict]:
    return ApiResponse.ok(await reader.stats())
