"""Error taxonomy shared by the store adapters and the aggregator."""

from __future__ import annotations


class StoreUnavailable(Exception):
    """Raised when the message store cannot be reached or a query fails."""


class MalformedRecord(Exception):
    """Raised when a message document or profile fragment lacks required fields."""

    def __init__(self, message: str, *, kind: str = "message") -> None:
        super().__init__(message)
        self.kind = kind


class EnrichmentUnavailable(Exception):
    """Raised when a profile lookup used for enrichment fails."""


class ProfileDatabaseUnavailable(Exception):
    """Raised when a write needs the relational database and it is not connected."""
