"""
Notes API — Public Routes
==========================

What:  Unauthenticated read-only views of a user's public notes and profile.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from notesapi.dependencies import get_note_repository, get_user_repository
from notesapi.repositories.base import NoteRepository, UserRepository
from notesapi.schemas.note import ErrorResponse, NotePage
from notesapi.schemas.user import ProfileEnvelope
from notesapi.services.note_service import note_service
from notesapi.services.user_service import user_service

router = APIRouter(tags=["Public"])


@router.get(
    "/public-notes/{user_id}",
    response_model=NotePage,
    responses={400: {"description": "Malformed user id", "model": ErrorResponse}},
    summary="List a user's public notes, newest first",
)
async def list_public_notes(
    user_id: str,
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    repo: NoteRepository = Depends(get_note_repository),
) -> NotePage:
    return await note_service.list_public(repo, user_id, page=page, limit=limit)


@router.get(
    "/public-profile/{user_id}",
    response_model=ProfileEnvelope,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Get a user's public profile",
)
async def get_public_profile(
    user_id: str,
    repo: UserRepository = Depends(get_user_repository),
) -> ProfileEnvelope:
    profile = await user_service.public_profile(repo, user_id)
    return ProfileEnvelope(user=profile)
