"""Pydantic models for the HTTP API."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

from messagerie.core.models import (
    DEFAULT_MESSAGE_TYPE,
    ConversationSummary,
    Message,
)

T = TypeVar("T")

# Only short messages are accepted through the REST send endpoint
MESSAGE_CONTENT_MAX_LENGTH = 4096


class ApiResponse(BaseModel, Generic[T]):
    """Envelope shared by every API response."""

    success: bool
    data: T | None = None
    error: str | None = None

    @classmethod
    def ok(cls, data: T) -> "ApiResponse[T]":
        return cls(success=True, data=data)

    @classmethod
    def err(cls, error: str) -> "ApiResponse[Any]":
        return cls(success=False, error=error)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class SendMessageRequest(BaseModel):
    sender: str = Field(min_length=1, description="Sending username")
    recipient: str = Field(min_length=1, description="Receiving username")
    content: str = Field(
        min_length=1,
        max_length=MESSAGE_CONTENT_MAX_LENGTH,
        description="Message body",
    )
    message_type: str = Field(
        default=DEFAULT_MESSAGE_TYPE, description="Free-form message tag"
    )


class MarkReadRequest(BaseModel):
    sender: str = Field(min_length=1, description="Author of the messages")
    recipient: str = Field(min_length=1, description="Reader of the messages")


class ConnectionRequest(BaseModel):
    username: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


class HistoryPayload(BaseModel):
    username: str
    messages: list[Message]
    count: int


class ConversationPayload(BaseModel):
    participants: list[str]
    messages: list[Message]
    count: int


class ConversationListPayload(BaseModel):
    username: str
    conversations: list[ConversationSummary]
    count: int


class MarkReadPayload(BaseModel):
    count: int


class DeletePayload(BaseModel):
    deleted: int


class PresencePayload(BaseModel):
    username: str
    is_online: bool


class OnlineUsersPayload(BaseModel):
    users: list[str]
    count: int
