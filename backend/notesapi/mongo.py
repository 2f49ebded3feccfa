"""
Notes API — Document Database Client Management
=================================================

What:  Shared async MongoDB client, database accessor and index bootstrap.
Why:   The document backend needs one pooled client for the whole process,
       the same way the relational backend shares one engine.
How:   PyMongo's AsyncMongoClient is created lazily on first use and reused by
       every request. Indexes are ensured once at startup.
Who:   Used by the document repositories via FastAPI dependencies.

Collections:
    users: fullName, email (unique index), passwordHash, createdOn
    notes: title, content, tags, isPinned, isPublic, userId, embedding,
           createdOn, updatedOn (compound index on userId/isPinned/createdOn)
"""

import logging
from typing import Optional

from pymongo import ASCENDING, DESCENDING, AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from notesapi.config import settings

logger = logging.getLogger(__name__)

_client: Optional[AsyncMongoClient] = None


def get_mongo_client() -> AsyncMongoClient:
    """Return the process-wide client, creating it on first use."""
    global _client
    if _client is None:
        _client = AsyncMongoClient(
            settings.mongodb_url,
            maxPoolSize=settings.mongodb_max_pool_size,
            tz_aware=True,
        )
    return _client


def get_mongo_database() -> AsyncDatabase:
    return get_mongo_client()[settings.mongodb_database]


async def ensure_indexes(db: AsyncDatabase) -> None:
    """
    Create the indexes both repositories rely on.

    email must be unique: it is the last line of defense against two
    concurrent registrations with the same address.
    """
    await db.users.create_index([("email", ASCENDING)], unique=True, name="uniq_users_email")
    await db.notes.create_index(
        [("userId", ASCENDING), ("isPinned", DESCENDING), ("createdOn", DESCENDING)],
        name="idx_notes_owner_pinned_created",
    )
    await db.notes.create_index([("createdOn", DESCENDING)], name="idx_notes_created")
    logger.info("MongoDB indexes ensured on database '%s'", db.name)


async def close_mongo_client() -> None:
    global _client
    if _client is not None:
        await _client.close()
        _client = None
