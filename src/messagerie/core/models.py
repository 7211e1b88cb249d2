"""Domain models for messages, profile fragments and conversation summaries."""

from datetime import date, datetime, timezone

from pydantic import BaseModel, Field

DEFAULT_MESSAGE_TYPE = "text"
EMPTY = ""
ENRICHMENT_FIELDS = ("first_name", "bio", "photo")

Bio = str | int


def to_iso_timestamp(value: datetime | str) -> str:
    """Normalise a store timestamp to an ISO-8601 string.

    Strings pass through untouched; datetimes are rendered in UTC with
    millisecond precision and a ``Z`` suffix.  Naive datetimes (BSON dates
    decode naive by default) are taken as UTC.
    """
    if isinstance(value, str):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (
        value.astimezone(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def to_bio_value(value: object) -> Bio | None:
    """Normalise a biographical column (age or date of birth)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_iso_timestamp(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, (int, str)):
        return value
    return str(value)


def utc_now_iso() -> str:
    return to_iso_timestamp(datetime.now(timezone.utc))


class Message(BaseModel):
    """A persisted chat message in canonical form."""

    id: str | None = Field(default=None, description="Store-assigned identifier")
    sender: str
    recipient: str
    content: str
    message_type: str = DEFAULT_MESSAGE_TYPE
    timestamp: str = Field(description="ISO-8601 timestamp")
    read: bool = False
    read_at: str | None = None

    def counterpart_of(self, user: str) -> str:
        """The other participant relative to ``user``."""
        return self.recipient if self.sender == user else self.sender


class ProfileFragment(BaseModel):
    """Partial profile data for one counterpart.

    Fields are optional so that a fallback row can carry nulls; the
    primary adapter only builds fragments with every field present.
    """

    username: str
    first_name: str | None = None
    bio: Bio | None = None
    photo: str | None = None


class ConversationSummary(BaseModel):
    """Latest state of a user's exchange with one counterpart (derived)."""

    counterpart_username: str
    first_name: str = EMPTY
    bio: Bio = EMPTY
    photo: str = EMPTY
    last_message: str
    last_message_timestamp: str

    def missing_fields(self) -> list[str]:
        """Enrichment fields still holding the empty sentinel."""
        return [
            name
            for name in ENRICHMENT_FIELDS
            if getattr(self, name) == EMPTY
        ]
