"""Message document converters: every shape translation in one place.

Covers:
- raw Mongo document (either historical shape) → ``Message``
- ``Message`` → Mongo document (current shape, for inserts)
- participant filters that match both shapes

Two shapes coexist in the ``messages`` collection:

- current: ``{sender, recipient, content}``
- legacy:  ``{from, to, message}``

They are modelled as a pydantic tagged union; the tag is picked from
the keys present in the document, so the rest of the code only ever
sees canonical ``Message`` objects.
"""

from datetime import datetime
from typing import Annotated, Any, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    ValidationError,
)

from messagerie.core.errors import MalformedRecord
from messagerie.core.models import DEFAULT_MESSAGE_TYPE, Message, to_iso_timestamp

from .constants import (
    FIELD_CONTENT,
    FIELD_FROM,
    FIELD_ID,
    FIELD_MESSAGE_TYPE,
    FIELD_READ,
    FIELD_READ_AT,
    FIELD_RECIPIENT,
    FIELD_SENDER,
    FIELD_TIMESTAMP,
    FIELD_TO,
    SHAPE_CURRENT,
    SHAPE_LEGACY,
)

# ------------------------------------------------------------------
# Raw document shapes
# ------------------------------------------------------------------


class _RawMessageDocument(BaseModel):
    """Fields shared by both document shapes."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Any = Field(default=None, alias=FIELD_ID)
    message_type: str | None = None
    type: str | None = None
    timestamp: str | datetime
    read: bool | None = False
    read_at: str | datetime | None = None

    def _common(self) -> dict[str, Any]:
        return {
            "id": str(self.id) if self.id is not None else None,
            "message_type": self.message_type or self.type or DEFAULT_MESSAGE_TYPE,
            "timestamp": to_iso_timestamp(self.timestamp),
            "read": bool(self.read),
            "read_at": (
                to_iso_timestamp(self.read_at) if self.read_at is not None else None
            ),
        }


class CurrentMessageDocument(_RawMessageDocument):
    sender: str = Field(min_length=1)
    recipient: str = Field(min_length=1)
    content: str | None = None

    def to_message(self) -> Message:
        return Message(
            sender=self.sender,
            recipient=self.recipient,
            content=self.content or "",
            **self._common(),
        )


class LegacyMessageDocument(_RawMessageDocument):
    from_: str = Field(alias=FIELD_FROM, min_length=1)
    to: str = Field(min_length=1)
    message: str | None = None

    def to_message(self) -> Message:
        return Message(
            sender=self.from_,
            recipient=self.to,
            content=self.message or "",
            **self._common(),
        )


def _document_shape(doc: Any) -> str:
    """Pick the shape tag: a ``from`` key marks the legacy layout."""
    if isinstance(doc, dict):
        return SHAPE_LEGACY if FIELD_FROM in doc else SHAPE_CURRENT
    return SHAPE_LEGACY if isinstance(doc, LegacyMessageDocument) else SHAPE_CURRENT


RawMessageDocument = Annotated[
    Union[
        Annotated[CurrentMessageDocument, Tag(SHAPE_CURRENT)],
        Annotated[LegacyMessageDocument, Tag(SHAPE_LEGACY)],
    ],
    Discriminator(_document_shape),
]

_raw_message_adapter: TypeAdapter[RawMessageDocument] = TypeAdapter(
    RawMessageDocument
)


# ------------------------------------------------------------------
# Document → Message
# ------------------------------------------------------------------


def document_to_message(doc: dict[str, Any]) -> Message:
    """Normalise a raw message document into a canonical ``Message``.

    Raises:
        MalformedRecord: when sender, recipient or timestamp is missing.
    """
    try:
        raw = _raw_message_adapter.validate_python(doc)
    except ValidationError as exc:
        raise MalformedRecord(
            f"Message document {doc.get(FIELD_ID)!r} is malformed: "
            f"{exc.error_count()} invalid field(s)",
            kind="message",
        ) from exc
    return raw.to_message()


# ------------------------------------------------------------------
# Message → Document
# ------------------------------------------------------------------


def message_to_document(message: Message) -> dict[str, Any]:
    """Build an insertable document (current shape) from a ``Message``."""
    doc: dict[str, Any] = {
        FIELD_SENDER: message.sender,
        FIELD_RECIPIENT: message.recipient,
        FIELD_CONTENT: message.content,
        FIELD_MESSAGE_TYPE: message.message_type,
        FIELD_TIMESTAMP: message.timestamp,
        FIELD_READ: message.read,
    }
    if message.read_at is not None:
        doc[FIELD_READ_AT] = message.read_at
    return doc


# ------------------------------------------------------------------
# Filters
# ------------------------------------------------------------------

_SHAPE_KEYS = ((FIELD_SENDER, FIELD_RECIPIENT), (FIELD_FROM, FIELD_TO))


def involving_filter(user: str) -> dict[str, Any]:
    """Messages where *user* is sender or recipient, in either shape."""
    return {
        "$or": [
            {key: user}
            for pair in _SHAPE_KEYS
            for key in pair
        ]
    }


def directed_filter(sender: str, recipient: str) -> list[dict[str, Any]]:
    """Clauses matching messages from *sender* to *recipient*, both shapes."""
    return [{src: sender, dst: recipient} for src, dst in _SHAPE_KEYS]


def between_filter(user_a: str, user_b: str) -> dict[str, Any]:
    """Messages exchanged by the pair in either direction, in either shape."""
    return {
        "$or": directed_filter(user_a, user_b) + directed_filter(user_b, user_a)
    }


def unread_filter(sender: str, recipient: str) -> dict[str, Any]:
    """Unread messages from *sender* to *recipient*."""
    return {"$or": directed_filter(sender, recipient), FIELD_READ: {"$ne": True}}
