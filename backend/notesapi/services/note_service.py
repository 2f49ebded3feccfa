"""
Notes API — Note Service (Notes Access Layer)
==============================================

What:  Owner-scoped note operations: create, read, merge-patch, pin, tag,
       visibility, delete, paginated listings, text search and indexing.
Why:   Encapsulates every note rule in one place, independent of HTTP
       concerns and of which storage backend is deployed.
How:   Each call receives the request's NoteRepository and the caller's
       owner id. Ownership is enforced by the repository query itself.
Who:   Called by route handlers in routes/notes.py, routes/owner.py and
       routes/public.py.

Ownership Rule:
    A note that exists but belongs to someone else is reported exactly like
    a note that does not exist (NotFoundError → 404). Only a caller with no
    identity at all gets UnauthorizedError.

Pagination:
    page defaults to 1 and is floored at 1. limit defaults to 10 (0 counts
    as missing) and is clamped to [1, 100].
    totalPages = max(1, ceil(total / limit)).

Design Decision:
    NoteService is stateless apart from its embedding collaborator. It holds
    no repository, so each request's unit of work stays in the dependency
    that opened it.
"""

import logging
import math
from typing import Any, List, Optional, Tuple

from notesapi.config import settings
from notesapi.exceptions import (
    ExternalServiceError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from notesapi.repositories.base import NoteQuery, NoteRepository, NoteSort
from notesapi.schemas.note import (
    NoteCreate,
    NotePage,
    NoteResponse,
    NoteUpdate,
    NoteWithAuthor,
)
from notesapi.services.embedding_base import EmbeddingService
from notesapi.services.gemini_service import embedding_service

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def normalize_pagination(page: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
    """Apply the page/limit defaults and bounds."""
    page = page if page and page > 0 else 1
    if not limit:
        limit = DEFAULT_PAGE_SIZE
    limit = max(1, min(MAX_PAGE_SIZE, limit))
    return page, limit


def validate_tags(tags: Any) -> List[str]:
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        raise ValidationError(message="Tags must be an array of strings", field="tags")
    return list(tags)


def embedding_text(title: str, content: str) -> str:
    return f"{title}\n\n{content}"


def _require_owner(owner_id: Optional[str]) -> str:
    if not owner_id:
        raise UnauthorizedError()
    return owner_id


class NoteService:
    """
    Business logic layer for note operations.

    Error Handling Strategy:
        Input problems raise ValidationError, missing or foreign notes raise
        NotFoundError. Storage failures arrive from the repository already
        translated to DatabaseError and propagate unchanged.
    """

    def __init__(self, embedder: EmbeddingService = embedding_service):
        self.embedder = embedder

    # ── Single-note operations ────────────────────────────────────────────

    async def create(
        self, repo: NoteRepository, owner_id: Optional[str], data: NoteCreate
    ) -> NoteResponse:
        """
        Create a note owned by `owner_id`.

        Raises:
            ValidationError: missing owner, empty title or content, bad tags
        """
        if not owner_id:
            raise ValidationError(message="User ID is required", field="ownerId")
        if not data.title or not data.title.strip():
            raise ValidationError(message="Title is required", field="title")
        if not data.content or not data.content.strip():
            raise ValidationError(message="Content is required", field="content")
        tags = validate_tags(data.tags)

        embedding = None
        if settings.embed_on_write and self.embedder.enabled:
            embedding = await self._try_embed(embedding_text(data.title, data.content))

        note = await repo.insert(
            owner_id=owner_id,
            title=data.title,
            content=data.content,
            tags=tags,
            is_pinned=data.is_pinned,
            is_public=data.is_public,
            embedding=embedding,
        )
        logger.info("Note %s created for owner %s", note.id, owner_id)
        return note

    async def get(self, repo: NoteRepository, owner_id: Optional[str], note_id: str) -> NoteResponse:
        owner_id = _require_owner(owner_id)
        note = await repo.find_one(note_id, owner_id)
        if note is None:
            raise NotFoundError(resource="note", resource_id=note_id)
        return note

    async def update(
        self,
        repo: NoteRepository,
        owner_id: Optional[str],
        note_id: str,
        data: NoteUpdate,
    ) -> NoteResponse:
        """
        Merge-patch a note.

        Only fields present in the request body are applied, so `isPinned:
        false` and `tags: []` are honored while omitted fields stay untouched.
        """
        owner_id = _require_owner(owner_id)
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationError(message="No changes provided")

        for field in ("title", "content"):
            if field in changes and (changes[field] is None or not changes[field].strip()):
                raise ValidationError(message=f"{field.capitalize()} cannot be empty", field=field)
        if "tags" in changes:
            changes["tags"] = validate_tags(changes["tags"])
        if "is_pinned" in changes and changes["is_pinned"] is None:
            raise ValidationError(message="isPinned must be a boolean", field="isPinned")

        note = await repo.update_one(note_id, owner_id, changes)
        if note is None:
            raise NotFoundError(resource="note", resource_id=note_id)

        if settings.embed_on_write and self.embedder.enabled and ({"title", "content"} & changes.keys()):
            vector = await self._try_embed(embedding_text(note.title, note.content))
            if vector is not None:
                await repo.update_one(note_id, owner_id, {"embedding": vector})
        return note

    async def toggle_pin(self, repo: NoteRepository, owner_id: Optional[str], note_id: str) -> NoteResponse:
        owner_id = _require_owner(owner_id)
        note = await repo.toggle_pin(note_id, owner_id)
        if note is None:
            raise NotFoundError(resource="note", resource_id=note_id)
        return note

    async def set_tags(
        self, repo: NoteRepository, owner_id: Optional[str], note_id: str, tags: Any
    ) -> None:
        """Replace the tag list wholesale."""
        owner_id = _require_owner(owner_id)
        tags = validate_tags(tags)
        note = await repo.update_one(note_id, owner_id, {"tags": tags})
        if note is None:
            raise NotFoundError(resource="note", resource_id=note_id)

    async def set_visibility(
        self, repo: NoteRepository, owner_id: Optional[str], note_id: str, is_public: bool
    ) -> NoteResponse:
        owner_id = _require_owner(owner_id)
        if not isinstance(is_public, bool):
            raise ValidationError(message="isPublic must be a boolean", field="isPublic")
        note = await repo.update_one(note_id, owner_id, {"is_public": is_public})
        if note is None:
            raise NotFoundError(resource="note", resource_id=note_id)
        return note

    async def delete(self, repo: NoteRepository, owner_id: Optional[str], note_id: str) -> None:
        owner_id = _require_owner(owner_id)
        if await repo.find_one(note_id, owner_id) is None:
            raise NotFoundError(resource="note", resource_id=note_id)
        if not await repo.delete_one(note_id, owner_id):
            # Removed between the existence check and the delete
            raise NotFoundError(resource="note", resource_id=note_id)
        logger.info("Note %s deleted by owner %s", note_id, owner_id)

    async def index_note(self, repo: NoteRepository, owner_id: Optional[str], note_id: str) -> NoteResponse:
        """
        Generate and store the embedding of an owned note.

        Raises:
            NotFoundError: note missing or not owned
            ExternalServiceError: provider disabled or failing
        """
        note = await self.get(repo, owner_id, note_id)
        vector = await self.embedder.embed(embedding_text(note.title, note.content))
        updated = await repo.update_one(note_id, note.owner_id, {"embedding": vector})
        if updated is None:
            raise NotFoundError(resource="note", resource_id=note_id)
        logger.info("Note %s indexed (%d dimensions)", note_id, len(vector))
        return updated

    # ── Listings ──────────────────────────────────────────────────────────

    async def list_own(
        self,
        repo: NoteRepository,
        owner_id: Optional[str],
        page: Optional[int] = None,
        limit: Optional[int] = None,
        query: Optional[str] = None,
    ) -> NotePage:
        """
        One page of the caller's notes, pinned first then newest first.

        `query` narrows to notes whose title, content or tags contain it,
        case-insensitively. Blank queries are ignored.
        """
        owner_id = _require_owner(owner_id)
        text = query.strip() if query else None
        return await self._page(
            repo, NoteQuery(owner_id=owner_id, text=text or None, sort=NoteSort.OWN), page, limit
        )

    async def list_public(
        self,
        repo: NoteRepository,
        user_id: str,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> NotePage:
        """One page of a user's public notes. No caller identity is needed."""
        if not user_id or not repo.is_valid_id(user_id):
            raise ValidationError(message="Invalid user ID", field="userId")
        return await self._page(
            repo, NoteQuery(owner_id=user_id, is_public=True, sort=NoteSort.PUBLIC), page, limit
        )

    async def list_all(self, repo: NoteRepository) -> List[NoteWithAuthor]:
        """Every note in the system with its author. Not owner-scoped."""
        return await repo.list_with_authors()

    async def search(self, repo: NoteRepository, owner_id: Optional[str], query: Optional[str]) -> List[NoteResponse]:
        owner_id = _require_owner(owner_id)
        if not query or not query.strip():
            raise ValidationError(message="Search query is required", field="query")
        items, _ = await repo.find_many(
            NoteQuery(owner_id=owner_id, text=query.strip(), sort=NoteSort.OWN)
        )
        return items

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _page(
        self,
        repo: NoteRepository,
        query: NoteQuery,
        page: Optional[int],
        limit: Optional[int],
    ) -> NotePage:
        page, limit = normalize_pagination(page, limit)
        items, total = await repo.find_many(query, skip=(page - 1) * limit, limit=limit)
        return NotePage(
            items=items,
            page=page,
            limit=limit,
            total=total,
            total_pages=max(1, math.ceil(total / limit)),
        )

    async def _try_embed(self, text: str) -> Optional[List[float]]:
        """Embedding for write paths: a provider failure leaves the note unindexed."""
        try:
            return await self.embedder.embed(text)
        except ExternalServiceError as e:
            logger.warning("Embedding on write skipped: %s", e.message)
            return None


# Singleton instance, stateless and shared across requests
note_service = NoteService()
