"""
Notes API — FastAPI Dependencies
=================================

What:  Per-request providers for repositories and the caller's identity.
How:   The repository providers pick the adapter named by STORAGE_BACKEND.
       Relational repositories share one session per request, opened through
       `session_scope`, so an exception raised by the route rolls the unit of
       work back and a normal return commits it.

Identity:
    get_current_user_id   → bearer header only (note routes)
    get_session_user_id   → bearer header, falling back to the auth cookie
                            (profile routes used by the cookie login flow)
    Both raise UnauthorizedError rather than FastAPI's HTTPException so the
    response uses the standard error body.
"""

from typing import AsyncIterator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from notesapi.config import settings
from notesapi.database import session_scope
from notesapi.mongo import get_mongo_database
from notesapi.repositories.base import NoteRepository, UserRepository
from notesapi.repositories.mongo import MongoNoteRepository, MongoUserRepository
from notesapi.repositories.sql import SqlNoteRepository, SqlUserRepository
from notesapi.services.user_service import user_service

bearer_scheme = HTTPBearer(auto_error=False)


async def get_note_repository() -> AsyncIterator[NoteRepository]:
    if settings.storage_backend == "document":
        yield MongoNoteRepository(get_mongo_database())
        return
    async with session_scope() as session:
        yield SqlNoteRepository(session)


async def get_user_repository() -> AsyncIterator[UserRepository]:
    if settings.storage_backend == "document":
        yield MongoUserRepository(get_mongo_database())
        return
    async with session_scope() as session:
        yield SqlUserRepository(session)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    token = credentials.credentials if credentials else None
    return user_service.verify_token(token)


async def get_session_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials:
        token = credentials.credentials
    else:
        token = request.cookies.get(settings.auth_cookie_name)
    return user_service.verify_token(token)
