"""Primary profile store: per-user contact documents in MongoDB.

Layout of one document::

    {"username": "<owner>",
     "contacts": [{"username": ..., "first_name": ..., "<bio>": ..., "photo": ...}]}

A fragment is only usable when every field is present; incomplete ones
are dropped one at a time so a single bad entry never hides the rest.
"""

import logging
from typing import Any

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import PyMongoError

from messagerie.configs.system import BioField
from messagerie.core.errors import MalformedRecord, StoreUnavailable
from messagerie.core.metrics import MALFORMED_RECORDS_TOTAL
from messagerie.core.models import ProfileFragment, to_bio_value
from messagerie.core.ports import ProfileStore

from .constants import (
    FIELD_CONTACTS,
    FIELD_FIRST_NAME,
    FIELD_OWNER,
    FIELD_PHOTO,
    FIELD_USERNAME,
)

logger = logging.getLogger(__name__)


def contact_to_fragment(contact: Any, bio_field: str) -> ProfileFragment:
    """Build a complete fragment from one contact entry.

    Raises:
        MalformedRecord: when the entry is not a mapping or a field is
            missing or null.
    """
    if not isinstance(contact, dict):
        raise MalformedRecord("Contact entry is not a document", kind="profile")
    required = (FIELD_USERNAME, FIELD_FIRST_NAME, bio_field, FIELD_PHOTO)
    missing = [name for name in required if contact.get(name) is None]
    if missing:
        raise MalformedRecord(
            f"Contact {contact.get(FIELD_USERNAME)!r} lacks {', '.join(missing)}",
            kind="profile",
        )
    return ProfileFragment(
        username=str(contact[FIELD_USERNAME]),
        first_name=str(contact[FIELD_FIRST_NAME]),
        bio=to_bio_value(contact[bio_field]),
        photo=str(contact[FIELD_PHOTO]),
    )


class MongoProfileStore(ProfileStore):
    """Reads the owner's contact list from the profiles collection."""

    def __init__(self, collection: AsyncIOMotorCollection, bio_field: BioField) -> None:
        self._collection = collection
        self._bio_field = bio_field

    async def get_known_counterparts(self, user: str) -> list[ProfileFragment]:
        try:
            doc = await self._collection.find_one({FIELD_OWNER: user})
        except PyMongoError as exc:
            raise StoreUnavailable(f"Profile store query failed: {exc}") from exc

        if doc is None:
            return []

        contacts = doc.get(FIELD_CONTACTS)
        if not isinstance(contacts, list):
            return []

        fragments: list[ProfileFragment] = []
        for contact in contacts:
            try:
                fragments.append(contact_to_fragment(contact, self._bio_field))
            except MalformedRecord as exc:
                MALFORMED_RECORDS_TOTAL.labels(kind=exc.kind).inc()
                logger.warning("Skipping profile fragment of %s: %s", user, exc)
        return fragments
