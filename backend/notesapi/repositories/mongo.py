"""
Notes API — Document Storage Adapter
=====================================

What:  MongoDB implementation of the storage contract.
Why:   Serves deployments with STORAGE_BACKEND=document.
How:   Wraps the shared AsyncDatabase. Documents keep the field names of the
       existing `notes` / `users` collections (camelCase, `userId`,
       `createdOn`) and are translated to NoteResponse / UserRecord here.

Query construction:
    Ownership is part of every filter ({"_id": ..., "userId": ...}).
    Text search uses case-insensitive $regex over title, content and tags
    with the query escaped first, so user input is always literal text.
    A $regex on the tags array matches any element containing the text.

Owners:
    A note is only inserted for an existing user id. There is no cascade:
    removing a user document leaves that user's notes in place, unreachable
    through the owner-scoped routes. No API operation deletes users.

    TogglePin is one find_one_and_update with an aggregation-pipeline update
    ({"$not": ["$isPinned"]}), so the read and the write cannot interleave.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from notesapi.config import settings
from notesapi.exceptions import ConflictError, ValidationError
from notesapi.repositories.base import (
    NoteQuery,
    NoteRepository,
    NoteSort,
    UserRepository,
    translate_backend_errors,
)
from notesapi.schemas.note import NoteAuthor, NoteResponse, NoteWithAuthor
from notesapi.schemas.user import UserRecord

logger = logging.getLogger(__name__)

# NoteResponse field → document field
FIELD_NAMES = {
    "title": "title",
    "content": "content",
    "tags": "tags",
    "is_pinned": "isPinned",
    "is_public": "isPublic",
    "embedding": "embedding",
}

# The embedding is never sent back to clients
NOTE_PROJECTION = {"embedding": 0}

SORTS = {
    NoteSort.OWN: [("isPinned", DESCENDING), ("createdOn", DESCENDING), ("_id", DESCENDING)],
    NoteSort.PUBLIC: [("createdOn", DESCENDING), ("_id", DESCENDING)],
    NoteSort.ALL: [("createdOn", DESCENDING), ("isPinned", DESCENDING), ("_id", DESCENDING)],
}


def parse_object_id(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def document_to_note(doc: Dict[str, Any]) -> NoteResponse:
    return NoteResponse(
        id=str(doc["_id"]),
        title=doc.get("title", ""),
        content=doc.get("content", ""),
        tags=list(doc.get("tags") or []),
        is_pinned=bool(doc.get("isPinned", False)),
        is_public=bool(doc.get("isPublic", False)),
        owner_id=str(doc.get("userId")),
        created_at=doc.get("createdOn") or doc["_id"].generation_time,
        updated_at=doc.get("updatedOn"),
    )


def document_to_user(doc: Dict[str, Any]) -> UserRecord:
    return UserRecord(
        id=str(doc["_id"]),
        full_name=doc.get("fullName") or "",
        email=doc["email"],
        created_at=doc.get("createdOn") or doc["_id"].generation_time,
        password_hash=doc.get("passwordHash", ""),
    )


def build_note_filter(query: NoteQuery) -> Dict[str, Any]:
    """Translate a NoteQuery into a MongoDB filter document."""
    mongo_filter: Dict[str, Any] = {"userId": query.owner_id}
    if query.is_public is not None:
        mongo_filter["isPublic"] = query.is_public
    if query.text:
        pattern = re.escape(query.text)
        mongo_filter["$or"] = [
            {field: {"$regex": pattern, "$options": "i"}}
            for field in ("title", "content", "tags")
        ]
    return mongo_filter


class MongoNoteRepository(NoteRepository):
    """Notes stored in the `notes` collection."""

    backend_errors = (PyMongoError,)

    def __init__(self, db: AsyncDatabase):
        self.db = db
        self.notes = db["notes"]
        self.users = db["users"]

    def is_valid_id(self, value: str) -> bool:
        return parse_object_id(value) is not None

    @translate_backend_errors("insert note")
    async def insert(
        self,
        owner_id: str,
        title: str,
        content: str,
        tags: List[str],
        is_pinned: bool,
        is_public: bool,
        embedding: Optional[List[float]] = None,
    ) -> NoteResponse:
        owner_oid = parse_object_id(owner_id)
        if owner_oid is None:
            raise ValidationError(message="Invalid user ID", field="ownerId")
        # No foreign keys here: the owner must exist before the note is written
        if await self.users.find_one({"_id": owner_oid}, {"_id": 1}) is None:
            raise ValidationError(message="Unknown user ID", field="ownerId")

        now = datetime.now(timezone.utc)
        doc: Dict[str, Any] = {
            "title": title,
            "content": content,
            "tags": list(tags),
            "isPinned": is_pinned,
            "isPublic": is_public,
            "userId": owner_id,
            "createdOn": now,
            "updatedOn": now,
        }
        if embedding is not None:
            doc["embedding"] = list(embedding)
        result = await self.notes.insert_one(doc)
        doc["_id"] = result.inserted_id
        return document_to_note(doc)

    @translate_backend_errors("find note")
    async def find_one(self, note_id: str, owner_id: str) -> Optional[NoteResponse]:
        oid = parse_object_id(note_id)
        if oid is None:
            return None
        doc = await self.notes.find_one({"_id": oid, "userId": owner_id}, NOTE_PROJECTION)
        return document_to_note(doc) if doc else None

    @translate_backend_errors("list notes")
    async def find_many(
        self, query: NoteQuery, skip: int = 0, limit: Optional[int] = None
    ) -> Tuple[List[NoteResponse], int]:
        mongo_filter = build_note_filter(query)
        total = await self.notes.count_documents(mongo_filter)
        cursor = self.notes.find(mongo_filter, NOTE_PROJECTION).sort(SORTS[query.sort]).skip(skip)
        if limit is not None:
            cursor = cursor.limit(limit)
        docs = await cursor.to_list(length=None)
        return [document_to_note(d) for d in docs], total

    @translate_backend_errors("update note")
    async def update_one(
        self, note_id: str, owner_id: str, fields: Dict[str, Any]
    ) -> Optional[NoteResponse]:
        oid = parse_object_id(note_id)
        if oid is None:
            return None
        changes: Dict[str, Any] = {"updatedOn": datetime.now(timezone.utc)}
        for name, value in fields.items():
            if name not in FIELD_NAMES:
                raise ValueError(f"Field '{name}' cannot be updated")
            changes[FIELD_NAMES[name]] = list(value) if name in ("tags", "embedding") else value
        doc = await self.notes.find_one_and_update(
            {"_id": oid, "userId": owner_id},
            {"$set": changes},
            projection=NOTE_PROJECTION,
            return_document=ReturnDocument.AFTER,
        )
        return document_to_note(doc) if doc else None

    @translate_backend_errors("toggle pin")
    async def toggle_pin(self, note_id: str, owner_id: str) -> Optional[NoteResponse]:
        oid = parse_object_id(note_id)
        if oid is None:
            return None
        doc = await self.notes.find_one_and_update(
            {"_id": oid, "userId": owner_id},
            [{"$set": {
                "isPinned": {"$not": ["$isPinned"]},
                "updatedOn": datetime.now(timezone.utc),
            }}],
            projection=NOTE_PROJECTION,
            return_document=ReturnDocument.AFTER,
        )
        return document_to_note(doc) if doc else None

    @translate_backend_errors("delete note")
    async def delete_one(self, note_id: str, owner_id: str) -> bool:
        oid = parse_object_id(note_id)
        if oid is None:
            return False
        result = await self.notes.delete_one({"_id": oid, "userId": owner_id})
        return result.deleted_count > 0

    @translate_backend_errors("list notes with authors")
    async def list_with_authors(self) -> List[NoteWithAuthor]:
        docs = await self.notes.find({}, NOTE_PROJECTION).sort(SORTS[NoteSort.ALL]).to_list(length=None)

        author_ids = {parse_object_id(d.get("userId")) for d in docs} - {None}
        authors: Dict[str, Dict[str, Any]] = {}
        if author_ids:
            users = await self.users.find(
                {"_id": {"$in": list(author_ids)}}, {"fullName": 1, "email": 1}
            ).to_list(length=None)
            authors = {str(u["_id"]): u for u in users}

        results = []
        for doc in docs:
            author = authors.get(str(doc.get("userId")), {})
            results.append(
                NoteWithAuthor(
                    **document_to_note(doc).model_dump(),
                    author=NoteAuthor(name=author.get("fullName"), email=author.get("email")),
                )
            )
        return results

    @translate_backend_errors("vector search")
    async def vector_search(
        self, owner_id: str, vector: Sequence[float], k: int
    ) -> List[Tuple[NoteResponse, float]]:
        # Requires an Atlas vector index on `embedding` with `userId` as a filter field
        pipeline = [
            {"$vectorSearch": {
                "index": settings.mongodb_vector_index,
                "path": "embedding",
                "queryVector": list(vector),
                "numCandidates": max(100, k * 20),
                "limit": k,
                "filter": {"userId": owner_id},
            }},
            {"$set": {"score": {"$meta": "vectorSearchScore"}}},
            {"$unset": "embedding"},
        ]
        cursor = await self.notes.aggregate(pipeline)
        docs = await cursor.to_list(length=None)
        return [(document_to_note(d), float(d.get("score", 0.0))) for d in docs]

    @translate_backend_errors("ping")
    async def ping(self) -> None:
        await self.db.command("ping")


class MongoUserRepository(UserRepository):
    """Accounts stored in the `users` collection."""

    backend_errors = (PyMongoError,)

    def __init__(self, db: AsyncDatabase):
        self.users = db["users"]

    @translate_backend_errors("insert user")
    async def insert(self, full_name: str, email: str, password_hash: str) -> UserRecord:
        doc = {
            "fullName": full_name,
            "email": email,
            "passwordHash": password_hash,
            "createdOn": datetime.now(timezone.utc),
        }
        try:
            result = await self.users.insert_one(doc)
        except DuplicateKeyError as e:
            raise ConflictError(message="Email already in use") from e
        doc["_id"] = result.inserted_id
        return document_to_user(doc)

    @translate_backend_errors("find user")
    async def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        oid = parse_object_id(user_id)
        if oid is None:
            return None
        doc = await self.users.find_one({"_id": oid})
        return document_to_user(doc) if doc else None

    @translate_backend_errors("find user")
    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        doc = await self.users.find_one({"email": email})
        return document_to_user(doc) if doc else None
