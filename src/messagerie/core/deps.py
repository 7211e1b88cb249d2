"""FastAPI dependency factories for the core services.

Per-request ``Depends`` factories with an explicit parameter chain; the
store adapters and the fallback capability come from ``app.state`` via
their own dependencies, so tests can override any link.
"""

from typing import Annotated

from fastapi import Depends

from messagerie.core.aggregator import ConversationAggregator
from messagerie.core.ports import FallbackCapability, MessageStore, ProfileStore
from messagerie.core.reader import MessageReader
from messagerie.infra.profile_db import get_fallback_capability
from messagerie.infra.stores.deps import get_message_store, get_profile_store


def get_message_reader(
    store: Annotated[MessageStore, Depends(get_message_store)],
) -> MessageReader:
    return MessageReader(store)


def get_conversation_aggregator(
    messages: Annotated[MessageStore, Depends(get_message_store)],
    profiles: Annotated[ProfileStore, Depends(get_profile_store)],
    fallback: Annotated[FallbackCapability, Depends(get_fallback_capability)],
) -> ConversationAggregator:
    """Create the aggregator for this request."""
    return ConversationAggregator(messages, profiles, fallback)
