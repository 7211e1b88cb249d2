"""Store ports: abstract adapters the core depends on."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from .models import Message, ProfileFragment


class MessageStore(ABC):
    """Interface for the message persistence adapter."""

    @abstractmethod
    async def list_messages_involving(self, user: str) -> list[Message]:
        """Every message where *user* is sender or recipient.

        Returned in ascending timestamp order; messages sharing a timestamp
        keep the store's natural order.  The conversation fold depends on
        this ordering.

        Raises:
            StoreUnavailable: when the store cannot be queried.
        """

    @abstractmethod
    async def list_messages_for(self, user: str, limit: int) -> list[Message]:
        """Messages sent or received by *user*, newest first, at most *limit*."""

    @abstractmethod
    async def list_messages_between(
        self, user_a: str, user_b: str, limit: int
    ) -> list[Message]:
        """Messages exchanged by the pair in either direction, newest first."""

    @abstractmethod
    async def insert(self, message: Message) -> Message:
        """Persist *message* and return it with its assigned id."""

    @abstractmethod
    async def mark_as_read(self, sender: str, recipient: str) -> int:
        """Mark unread messages from *sender* to *recipient* as read."""

    @abstractmethod
    async def delete_between(self, user_a: str, user_b: str) -> int:
        """Delete every message exchanged by the pair."""

    @abstractmethod
    async def collection_stats(self) -> dict[str, Any]:
        """Document counts of the known collections."""


class ProfileStore(ABC):
    """Interface for the primary profile store."""

    @abstractmethod
    async def get_known_counterparts(self, user: str) -> list[ProfileFragment]:
        """Profile fragments of the counterparts *user* knows about.

        An unknown *user* yields an empty list; malformed fragments are
        dropped individually.
        """


class FallbackProfileStore(ABC):
    """Interface for the secondary (relational) profile source."""

    @abstractmethod
    async def get_profile_by_username(self, username: str) -> ProfileFragment | None:
        """Profile columns for *username*; ``None`` when no row exists.

        Raises:
            EnrichmentUnavailable: when the query fails.
        """


@dataclass(frozen=True)
class FallbackUnavailable:
    """The fallback store was not connected at startup."""

    reason: str


FallbackCapability = FallbackProfileStore | FallbackUnavailable
