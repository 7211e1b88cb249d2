"""Centralized FastAPI dependency type aliases.

Import these ``*Dep`` aliases in route modules instead of manually
writing ``Annotated[T, Depends(get_xxx)]`` everywhere.  Each alias
corresponds to a single ``get_*`` factory and can be overridden in
tests via ``app.dependency_overrides[get_xxx] = ...``.
"""

from typing import Annotated

from fastapi import Depends

from messagerie.configs.config import get_api_config
from messagerie.configs.system import APIConfig
from messagerie.core.aggregator import ConversationAggregator
from messagerie.core.deps import get_conversation_aggregator, get_message_reader
from messagerie.core.reader import MessageReader
from messagerie.infra.stores.deps import get_presence_repository
from messagerie.infra.stores.users import UserPresenceRepository

APIConfigDep = Annotated[APIConfig, Depends(get_api_config)]
MessageReaderDep = Annotated[MessageReader, Depends(get_message_reader)]
ConversationAggregatorDep = Annotated[
    ConversationAggregator, Depends(get_conversation_aggregator)
]
PresenceRepositoryDep = Annotated[
    UserPresenceRepository, Depends(get_presence_repository)
]
