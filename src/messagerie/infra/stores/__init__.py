"""Store adapters (MongoDB messages/profiles, PostgreSQL fallback/presence).

The per-request factories live in ``stores.deps``; they are not
re-exported here because ``deps`` reaches back into ``infra.profile_db``,
which itself imports ``stores.fallback``.
"""

from .fallback import PgFallbackProfileStore
from .messages import MongoMessageStore
from .profiles import MongoProfileStore
from .users import UserPresenceRepository

__all__ = [
    "MongoMessageStore",
    "MongoProfileStore",
    "PgFallbackProfileStore",
    "UserPresenceRepository",
]
