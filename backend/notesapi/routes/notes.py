"""
Notes API — Note Resource Routes
=================================

What:  The resource-style /notes endpoints.
How:   Extracts path/body parameters, delegates to NoteService, wraps the
       result in the response envelope.

Route Groups:
    POST /notes, GET /notes
        Unscoped: the owner comes from the request body, and the listing
        returns every note in the system. Both exist only while
        ENABLE_UNSCOPED_ROUTES is on; otherwise they answer 404.
    /notes/{id}...
        Bearer credential required; every operation is owner-scoped, so a
        note owned by someone else answers 404 like a missing one.
"""

import logging

from fastapi import APIRouter, Depends

from notesapi.config import settings
from notesapi.dependencies import get_current_user_id, get_note_repository
from notesapi.exceptions import NotFoundError
from notesapi.repositories.base import NoteRepository
from notesapi.schemas.note import (
    AuthoredNoteListEnvelope,
    ErrorResponse,
    MessageResponse,
    NoteCreate,
    NoteEnvelope,
    NoteUpdate,
    TagsUpdate,
    VisibilityUpdate,
)
from notesapi.services.note_service import note_service

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(tags=["Notes"])

NOT_FOUND = {404: {"description": "Note not found or not owned by caller", "model": ErrorResponse}}
AUTH_REQUIRED = {401: {"description": "Missing or invalid bearer token", "model": ErrorResponse}}


async def require_unscoped_routes() -> None:
    """Hide the unauthenticated routes when they are disabled."""
    if not settings.enable_unscoped_routes:
        raise NotFoundError(resource="route")


# ══════════════════════════════════════════════════════════════════════════
# Unscoped routes
# ══════════════════════════════════════════════════════════════════════════


@router.post(
    "/notes",
    status_code=201,
    response_model=NoteEnvelope,
    dependencies=[Depends(require_unscoped_routes)],
    responses={400: {"description": "Missing title, content or owner", "model": ErrorResponse}},
    summary="Create a note for the owner named in the body",
)
async def create_unscoped_note(
    body: NoteCreate,
    repo: NoteRepository = Depends(get_note_repository),
) -> NoteEnvelope:
    note = await note_service.create(repo, body.owner_id, body)
    return NoteEnvelope(note=note, message="Note created successfully")


@router.get(
    "/notes",
    response_model=AuthoredNoteListEnvelope,
    dependencies=[Depends(require_unscoped_routes)],
    summary="List every note with its author",
)
async def list_all_notes(
    repo: NoteRepository = Depends(get_note_repository),
) -> AuthoredNoteListEnvelope:
    notes = await note_service.list_all(repo)
    return AuthoredNoteListEnvelope(notes=notes)


# ══════════════════════════════════════════════════════════════════════════
# Owner-scoped routes
# ══════════════════════════════════════════════════════════════════════════


@router.get(
    "/notes/{note_id}",
    response_model=NoteEnvelope,
    responses={**AUTH_REQUIRED, **NOT_FOUND},
    summary="Get one of the caller's notes",
)
async def get_note(
    note_id: str,
    owner_id: str = Depends(get_current_user_id),
    repo: NoteRepository = Depends(get_note_repository),
) -> NoteEnvelope:
    note = await note_service.get(repo, owner_id, note_id)
    return NoteEnvelope(note=note)


@router.put(
    "/notes/{note_id}",
    response_model=NoteEnvelope,
    responses={**AUTH_REQUIRED, **NOT_FOUND},
    summary="Update fields of one of the caller's notes",
    description="Merge-patch: only the fields present in the body are changed.",
)
async def update_note(
    note_id: str,
    body: NoteUpdate,
    owner_id: str = Depends(get_current_user_id),
    repo: NoteRepository = Depends(get_note_repository),
) -> NoteEnvelope:
    note = await note_service.update(repo, owner_id, note_id, body)
    return NoteEnvelope(note=note, message="Note updated successfully")


@router.patch(
    "/notes/{note_id}/tags",
    response_model=MessageResponse,
    responses={**AUTH_REQUIRED, **NOT_FOUND},
    summary="Replace the tags of one of the caller's notes",
)
async def set_note_tags(
    note_id: str,
    body: TagsUpdate,
    owner_id: str = Depends(get_current_user_id),
    repo: NoteRepository = Depends(get_note_repository),
) -> MessageResponse:
    await note_service.set_tags(repo, owner_id, note_id, body.tags)
    return MessageResponse(message="Tags updated successfully")


@router.patch(
    "/notes/{note_id}/pin",
    response_model=NoteEnvelope,
    responses={**AUTH_REQUIRED, **NOT_FOUND},
    summary="Toggle the pinned flag of one of the caller's notes",
)
async def toggle_note_pin(
    note_id: str,
    owner_id: str = Depends(get_current_user_id),
    repo: NoteRepository = Depends(get_note_repository),
) -> NoteEnvelope:
    note = await note_service.toggle_pin(repo, owner_id, note_id)
    return NoteEnvelope(note=note, message="Note pin status updated")


@router.put(
    "/notes/{note_id}/visibility",
    response_model=NoteEnvelope,
    responses={**AUTH_REQUIRED, **NOT_FOUND},
    summary="Make one of the caller's notes public or private",
)
async def set_note_visibility(
    note_id: str,
    body: VisibilityUpdate,
    owner_id: str = Depends(get_current_user_id),
    repo: NoteRepository = Depends(get_note_repository),
) -> NoteEnvelope:
    note = await note_service.set_visibility(repo, owner_id, note_id, body.is_public)
    state = "public" if note.is_public else "private"
    return NoteEnvelope(note=note, message=f"Note is now {state}")


@router.post(
    "/notes/{note_id}/embedding",
    response_model=NoteEnvelope,
    responses={
        **AUTH_REQUIRED,
        **NOT_FOUND,
        500: {"description": "Embedding provider unavailable", "model": ErrorResponse},
    },
    summary="Index one of the caller's notes for semantic search",
)
async def index_note(
    note_id: str,
    owner_id: str = Depends(get_current_user_id),
    repo: NoteRepository = Depends(get_note_repository),
) -> NoteEnvelope:
    note = await note_service.index_note(repo, owner_id, note_id)
    return NoteEnvelope(note=note, message="Note indexed for semantic search")


@router.delete(
    "/notes/{note_id}",
    response_model=MessageResponse,
    responses={**AUTH_REQUIRED, **NOT_FOUND},
    summary="Delete one of the caller's notes",
)
async def delete_note(
    note_id: str,
    owner_id: str = Depends(get_current_user_id),
    repo: NoteRepository = Depends(get_note_repository),
) -> MessageResponse:
    await note_service.delete(repo, owner_id, note_id)
    return MessageResponse(message="Note deleted successfully")
