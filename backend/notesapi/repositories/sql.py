"""
Notes API — Relational Storage Adapter
=======================================

What:  SQLAlchemy implementation of the storage contract.
Why:   Serves deployments with STORAGE_BACKEND=relational (PostgreSQL in
       production, SQLite for local runs and tests).
How:   Each repository wraps the request's AsyncSession. Writes are flushed
       here and committed by `database.session_scope` at the end of the request.

Query construction:
    Ownership is always part of the WHERE clause, so "not yours" and
    "does not exist" both come back as zero rows.

    Text search lowers both sides and uses LIKE with autoescape, so '%' and
    '_' in the query match literally. Tags are searched through their
    serialized JSON text (CAST(tags AS VARCHAR)), which makes tag search a
    substring match rather than a membership test.

    The query is lowered with str.lower and the columns with SQL lower().
    SQLite's lower() is replaced per connection in `database` with a
    Unicode-aware one, so "äpfel" finds "Äpfel" on both dialects.
"""

import logging
import math
import uuid
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import String, cast, delete, func, not_, or_, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notesapi.exceptions import ConflictError, ValidationError
from notesapi.models.note import Note, utcnow
from notesapi.models.user import User
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

# Columns a caller may change through update_one
UPDATABLE_FIELDS = {"title", "content", "tags", "is_pinned", "is_public", "embedding"}


def parse_uuid(value: Any) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    if len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def note_to_response(row: Note) -> NoteResponse:
    return NoteResponse(
        id=str(row.id),
        title=row.title,
        content=row.content,
        tags=list(row.tags or []),
        is_pinned=bool(row.is_pinned),
        is_public=bool(row.is_public),
        owner_id=str(row.owner_id),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def user_to_record(row: User) -> UserRecord:
    return UserRecord(
        id=str(row.id),
        full_name=row.full_name,
        email=row.email,
        created_at=row.created_at,
        password_hash=row.password_hash,
    )


ORDERINGS = {
    NoteSort.OWN: (Note.is_pinned.desc(), Note.created_at.desc(), Note.id.desc()),
    NoteSort.PUBLIC: (Note.created_at.desc(), Note.id.desc()),
    NoteSort.ALL: (Note.created_at.desc(), Note.is_pinned.desc(), Note.id.desc()),
}


class SqlNoteRepository(NoteRepository):
    """Notes stored in the `notes` table."""

    backend_errors = (SQLAlchemyError,)

    def __init__(self, session: AsyncSession):
        self.session = session

    def is_valid_id(self, value: str) -> bool:
        return parse_uuid(value) is not None

    async def _get(self, note_id: uuid.UUID, owner_id: uuid.UUID, refresh: bool = False) -> Optional[Note]:
        stmt = select(Note).where(Note.id == note_id, Note.owner_id == owner_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

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
        owner_uuid = parse_uuid(owner_id)
        if owner_uuid is None:
            raise ValidationError(message="Invalid user ID", field="ownerId")

        now = utcnow()
        note = Note(
            title=title,
            content=content,
            tags=list(tags),
            is_pinned=is_pinned,
            is_public=is_public,
            owner_id=owner_uuid,
            embedding=embedding,
            created_at=now,
            updated_at=now,
        )
        self.session.add(note)
        try:
            await self.session.flush()
        except IntegrityError as e:
            # Foreign key: the owner does not exist
            raise ValidationError(message="Unknown user ID", field="ownerId") from e
        logger.debug("Inserted note %s for owner %s", note.id, owner_uuid)
        return note_to_response(note)

    @translate_backend_errors("find note")
    async def find_one(self, note_id: str, owner_id: str) -> Optional[NoteResponse]:
        note_uuid, owner_uuid = parse_uuid(note_id), parse_uuid(owner_id)
        if note_uuid is None or owner_uuid is None:
            return None
        note = await self._get(note_uuid, owner_uuid)
        return note_to_response(note) if note else None

    def _conditions(self, query: NoteQuery, owner_uuid: uuid.UUID) -> list:
        conditions = [Note.owner_id == owner_uuid]
        if query.is_public is not None:
            conditions.append(Note.is_public == query.is_public)
        if query.text:
            needle = query.text.lower()
            conditions.append(
                or_(
                    func.lower(Note.title, type_=String).contains(needle, autoescape=True),
                    func.lower(Note.content, type_=String).contains(needle, autoescape=True),
                    func.lower(cast(Note.tags, String), type_=String).contains(needle, autoescape=True),
                )
            )
        return conditions

    @translate_backend_errors("list notes")
    async def find_many(
        self, query: NoteQuery, skip: int = 0, limit: Optional[int] = None
    ) -> Tuple[List[NoteResponse], int]:
        owner_uuid = parse_uuid(query.owner_id)
        if owner_uuid is None:
            return [], 0
        conditions = self._conditions(query, owner_uuid)

        count_result = await self.session.execute(
            select(func.count()).select_from(Note).where(*conditions)
        )
        total = count_result.scalar() or 0

        stmt = select(Note).where(*conditions).order_by(*ORDERINGS[query.sort]).offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return [note_to_response(n) for n in result.scalars().all()], total

    @translate_backend_errors("update note")
    async def update_one(
        self, note_id: str, owner_id: str, fields: Dict[str, Any]
    ) -> Optional[NoteResponse]:
        note_uuid, owner_uuid = parse_uuid(note_id), parse_uuid(owner_id)
        if note_uuid is None or owner_uuid is None:
            return None
        note = await self._get(note_uuid, owner_uuid)
        if note is None:
            return None

        for name, value in fields.items():
            if name not in UPDATABLE_FIELDS:
                raise ValueError(f"Field '{name}' cannot be updated")
            setattr(note, name, list(value) if name == "tags" else value)
        note.updated_at = utcnow()
        await self.session.flush()
        return note_to_response(note)

    @translate_backend_errors("toggle pin")
    async def toggle_pin(self, note_id: str, owner_id: str) -> Optional[NoteResponse]:
        note_uuid, owner_uuid = parse_uuid(note_id), parse_uuid(owner_id)
        if note_uuid is None or owner_uuid is None:
            return None
        result = await self.session.execute(
            update(Note)
            .where(Note.id == note_uuid, Note.owner_id == owner_uuid)
            .values(is_pinned=not_(Note.is_pinned), updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        note = await self._get(note_uuid, owner_uuid, refresh=True)
        return note_to_response(note) if note else None

    @translate_backend_errors("delete note")
    async def delete_one(self, note_id: str, owner_id: str) -> bool:
        note_uuid, owner_uuid = parse_uuid(note_id), parse_uuid(owner_id)
        if note_uuid is None or owner_uuid is None:
            return False
        result = await self.session.execute(
            delete(Note)
            .where(Note.id == note_uuid, Note.owner_id == owner_uuid)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    @translate_backend_errors("list notes with authors")
    async def list_with_authors(self) -> List[NoteWithAuthor]:
        result = await self.session.execute(
            select(Note, User.full_name, User.email)
            .outerjoin(User, User.id == Note.owner_id)
            .order_by(*ORDERINGS[NoteSort.ALL])
        )
        return [
            NoteWithAuthor(
                **note_to_response(note).model_dump(),
                author=NoteAuthor(name=name, email=email),
            )
            for note, name, email in result.all()
        ]

    @translate_backend_errors("vector search")
    async def vector_search(
        self, owner_id: str, vector: Sequence[float], k: int
    ) -> List[Tuple[NoteResponse, float]]:
        owner_uuid = parse_uuid(owner_id)
        if owner_uuid is None:
            return []
        result = await self.session.execute(
            select(Note).where(Note.owner_id == owner_uuid, Note.embedding.is_not(None))
        )
        scored = [
            (note, cosine_similarity(vector, note.embedding))
            for note in result.scalars().all()
        ]
        scored.sort(key=lambda pair: pair[1], reverse=True)
        return [(note_to_response(note), score) for note, score in scored[:k]]

    @translate_backend_errors("ping")
    async def ping(self) -> None:
        await self.session.execute(text("SELECT 1"))


class SqlUserRepository(UserRepository):
    """Accounts stored in the `users` table."""

    backend_errors = (SQLAlchemyError,)

    def __init__(self, session: AsyncSession):
        self.session = session

    @translate_backend_errors("insert user")
    async def insert(self, full_name: str, email: str, password_hash: str) -> UserRecord:
        user = User(full_name=full_name, email=email, password_hash=password_hash, created_at=utcnow())
        self.session.add(user)
        try:
            await self.session.flush()
        except IntegrityError as e:
            # Unique index on email: a concurrent registration won the race
            raise ConflictError(message="Email already in use") from e
        return user_to_record(user)

    @translate_backend_errors("find user")
    async def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        user_uuid = parse_uuid(user_id)
        if user_uuid is None:
            return None
        user = await self.session.get(User, user_uuid)
        return user_to_record(user) if user else None

    @translate_backend_errors("find user")
    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        result = await self.session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        return user_to_record(user) if user else None
