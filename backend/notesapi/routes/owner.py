"""
Notes API — Owner Routes
=========================

What:  The action-named endpoints used by the notes frontend
       (/add-note, /edit-note/{id}, /get-all-notes, /search-notes ...).
Why:   Kept alongside the /notes resource routes so existing clients work
       unchanged. Every route here needs a bearer credential and acts on
       the caller's own notes only.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from notesapi.dependencies import get_current_user_id, get_note_repository
from notesapi.repositories.base import NoteRepository
from notesapi.schemas.note import (
    ErrorResponse,
    MessageResponse,
    NoteCreate,
    NoteEnvelope,
    NoteListEnvelope,
    NotePage,
    NoteUpdate,
    SemanticSearchRequest,
    SemanticSearchResponse,
)
from notesapi.services.note_service import note_service
from notesapi.services.search_service import search_service

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Owner Notes"],
    responses={401: {"description": "Missing or invalid bearer token", "model": ErrorResponse}},
)


@router.post("/add-note", status_code=201, response_model=NoteEnvelope, summary="Create a note")
async def add_note(
    body: NoteCreate,
    owner_id: str = Depends(get_current_user_id),
    repo: NoteRepository = Depends(get_note_repository),
) -> NoteEnvelope:
    # Any owner id in the body is ignored; the token decides
    note = await note_service.create(repo, owner_id, body)
    return NoteEnvelope(note=note, message="Note added successfully")


@router.put("/edit-note/{note_id}", response_model=NoteEnvelope, summary="Merge-patch a note")
async def edit_note(
    note_id: str,
    body: NoteUpdate,
    owner_id: str = Depends(get_current_user_id),
    repo: NoteRepository = Depends(get_note_repository),
) -> NoteEnvelope:
    note = await note_service.update(repo, owner_id, note_id, body)
    return NoteEnvelope(note=note, message="Note updated successfully")


@router.put("/update-note-pinned/{note_id}", response_model=NoteEnvelope, summary="Toggle pinned")
async def update_note_pinned(
    note_id: str,
    owner_id: str = Depends(get_current_user_id),
    repo: NoteRepository = Depends(get_note_repository),
) -> NoteEnvelope:
    note = await note_service.toggle_pin(repo, owner_id, note_id)
    return NoteEnvelope(note=note, message="Note pin status updated")


@router.get(
    "/get-all-notes",
    response_model=NotePage,
    summary="List the caller's notes, one page at a time",
    description=(
        "Pinned notes first, then newest first. `q` filters by a case-insensitive "
        "substring of title, content or tags. `limit` is clamped to 1..100."
    ),
)
async def get_all_notes(
    page: Optional[int] = Query(default=None, description="Page number, starting at 1"),
    limit: Optional[int] = Query(default=None, description="Items per page (default 10, max 100)"),
    q: Optional[str] = Query(default=None, description="Text to search for"),
    owner_id: str = Depends(get_current_user_id),
    repo: NoteRepository = Depends(get_note_repository),
) -> NotePage:
    return await note_service.list_own(repo, owner_id, page=page, limit=limit, query=q)


@router.get("/get-note/{note_id}", response_model=NoteEnvelope, summary="Get one note")
async def get_note(
    note_id: str,
    owner_id: str = Depends(get_current_user_id),
    repo: NoteRepository = Depends(get_note_repository),
) -> NoteEnvelope:
    note = await note_service.get(repo, owner_id, note_id)
    return NoteEnvelope(note=note)


@router.delete("/delete-note/{note_id}", response_model=MessageResponse, summary="Delete a note")
async def delete_note(
    note_id: str,
    owner_id: str = Depends(get_current_user_id),
    repo: NoteRepository = Depends(get_note_repository),
) -> MessageResponse:
    await note_service.delete(repo, owner_id, note_id)
    return MessageResponse(message="Note deleted successfully")


@router.get(
    "/search-notes",
    response_model=NoteListEnvelope,
    responses={400: {"description": "Missing query", "model": ErrorResponse}},
    summary="Text search over the caller's notes",
)
async def search_notes(
    query: Optional[str] = Query(default=None, description="Text to search for"),
    owner_id: str = Depends(get_current_user_id),
    repo: NoteRepository = Depends(get_note_repository),
) -> NoteListEnvelope:
    notes = await note_service.search(repo, owner_id, query)
    return NoteListEnvelope(
        notes=notes,
        message="Notes matching the search query retrieved successfully",
    )


@router.post(
    "/search-notes",
    response_model=SemanticSearchResponse,
    responses={
        400: {"description": "Missing query", "model": ErrorResponse},
        500: {"description": "Embedding provider unavailable", "model": ErrorResponse},
    },
    summary="Semantic search over the caller's indexed notes",
)
async def semantic_search_notes(
    body: SemanticSearchRequest,
    owner_id: str = Depends(get_current_user_id),
    repo: NoteRepository = Depends(get_note_repository),
) -> SemanticSearchResponse:
    return await search_service.semantic_search(repo, owner_id, body.query, limit=body.limit)
