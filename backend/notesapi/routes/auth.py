"""
Notes API — Authentication Routes
==================================

What:  Account registration, login (token in body or in an HttpOnly cookie),
       logout, token verification and the current user's profile.

Cookie Flow:
    POST /auth/cookie/login stores the same bearer token in the
    AUTH_COOKIE_NAME cookie (HttpOnly, one hour). /auth/profile and /auth/me
    accept either that cookie or an Authorization header.
"""

import logging

from fastapi import APIRouter, Depends, Response

from notesapi.config import settings
from notesapi.dependencies import (
    get_current_user_id,
    get_session_user_id,
    get_user_repository,
)
from notesapi.repositories.base import UserRepository
from notesapi.schemas.note import ErrorResponse, MessageResponse
from notesapi.schemas.user import (
    CookieLoginResponse,
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    TokenVerification,
    UserEnvelope,
)
from notesapi.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

INVALID_CREDENTIALS = {401: {"description": "Invalid credentials", "model": ErrorResponse}}


def _cookie_options() -> dict:
    secure = settings.auth_cookie_secure
    return {
        "httponly": True,
        "secure": secure,
        # Cross-site cookies must be Secure
        "samesite": "none" if secure else "lax",
        "path": "/",
    }


@router.post(
    "/register",
    status_code=201,
    response_model=UserEnvelope,
    responses={
        400: {"description": "Missing field", "model": ErrorResponse},
        409: {"description": "Email already in use", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def register(
    body: RegisterRequest,
    repo: UserRepository = Depends(get_user_repository),
) -> UserEnvelope:
    user = await user_service.register(repo, body)
    return UserEnvelope(user=user, message="Registration successful")


@router.post(
    "/login",
    response_model=TokenResponse,
    responses=INVALID_CREDENTIALS,
    summary="Log in and receive a bearer token",
)
async def login(
    body: LoginRequest,
    repo: UserRepository = Depends(get_user_repository),
) -> TokenResponse:
    token, expires_in, _ = await user_service.authenticate(repo, body)
    return TokenResponse(token=token, expires_in=expires_in)


@router.post(
    "/cookie/login",
    response_model=CookieLoginResponse,
    responses=INVALID_CREDENTIALS,
    summary="Log in and receive the token as an HttpOnly cookie",
)
async def cookie_login(
    body: LoginRequest,
    response: Response,
    repo: UserRepository = Depends(get_user_repository),
) -> CookieLoginResponse:
    token, expires_in, user = await user_service.authenticate(repo, body)
    response.set_cookie(
        settings.auth_cookie_name,
        token,
        max_age=expires_in,
        **_cookie_options(),
    )
    return CookieLoginResponse(user=user)


@router.post("/logout", response_model=MessageResponse, summary="Clear the auth cookie")
async def logout(response: Response) -> MessageResponse:
    response.delete_cookie(settings.auth_cookie_name, **_cookie_options())
    return MessageResponse(message="Logged out successfully")


@router.get(
    "/verify",
    response_model=TokenVerification,
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
    summary="Check a bearer token",
)
async def verify(user_id: str = Depends(get_current_user_id)) -> TokenVerification:
    return TokenVerification(user_id=user_id)


@router.get(
    "/profile",
    response_model=UserEnvelope,
    responses={401: {"description": "Not authenticated", "model": ErrorResponse}},
    summary="The current user's account",
)
async def profile(
    user_id: str = Depends(get_session_user_id),
    repo: UserRepository = Depends(get_user_repository),
) -> UserEnvelope:
    user = await user_service.who_am_i(repo, user_id)
    return UserEnvelope(user=user)


@router.get(
    "/me",
    response_model=UserEnvelope,
    responses={401: {"description": "Not authenticated", "model": ErrorResponse}},
    summary="Alias of /auth/profile",
)
async def me(
    user_id: str = Depends(get_session_user_id),
    repo: UserRepository = Depends(get_user_repository),
) -> UserEnvelope:
    user = await user_service.who_am_i(repo, user_id)
    return UserEnvelope(user=user)
