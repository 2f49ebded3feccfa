"""
Notes API — User Service (Account Layer)
=========================================

What:  Registration, login, identity lookup and public profiles.
Why:   Keeps password and token handling out of the route handlers.
How:   Each call receives the request's UserRepository. Passwords are hashed
       with passlib before they reach storage; tokens are issued and verified
       by notesapi.security.

Login Failure Policy:
    Unknown email and wrong password raise the same InvalidCredentialsError,
    and an unknown email still costs one hash verification, so responses do
    not reveal which emails are registered.
"""

import logging
from typing import Optional, Tuple

from notesapi.exceptions import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from notesapi.repositories.base import UserRepository
from notesapi.schemas.user import (
    LoginRequest,
    PublicProfile,
    RegisterRequest,
    UserRecord,
    UserResponse,
)
from notesapi.security import (
    create_access_token,
    decode_token,
    dummy_verify,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)


def to_public(user: UserRecord) -> UserResponse:
    """Drop the password hash."""
    return UserResponse(
        id=user.id,
        full_name=user.full_name,
        email=user.email,
        created_at=user.created_at,
    )


class UserService:

    async def register(self, repo: UserRepository, data: RegisterRequest) -> UserResponse:
        """
        Create an account.

        Raises:
            ValidationError: a field is missing or blank
            ConflictError: the email is already registered
        """
        full_name = (data.full_name or "").strip()
        # Emails are stored and matched exactly as given
        email = data.email or ""
        if not full_name:
            raise ValidationError(message="Full name is required", field="fullName")
        if not email.strip():
            raise ValidationError(message="Email is required", field="email")
        if not data.password:
            raise ValidationError(message="Password is required", field="password")

        if await repo.find_by_email(email) is not None:
            raise ConflictError(message="Email already in use")

        # The unique index still rejects a concurrent duplicate with ConflictError
        user = await repo.insert(full_name, email, hash_password(data.password))
        logger.info("User %s registered", user.id)
        return to_public(user)

    async def authenticate(
        self, repo: UserRepository, data: LoginRequest
    ) -> Tuple[str, int, UserResponse]:
        """
        Check credentials and issue a bearer token.

        Returns:
            (token, lifetime in seconds, user)
        """
        email = data.email or ""
        if not email.strip() or not data.password:
            raise ValidationError(message="Email and password are required")

        user = await repo.find_by_email(email)
        if user is None:
            dummy_verify()
            logger.info("Login failed: unknown email")
            raise InvalidCredentialsError()
        if not verify_password(data.password, user.password_hash):
            logger.info("Login failed for user %s", user.id)
            raise InvalidCredentialsError(context={"user_id": user.id})

        token, expires_in = create_access_token(user.id)
        logger.info("User %s logged in", user.id)
        return token, expires_in, to_public(user)

    def verify_token(self, token: Optional[str]) -> str:
        """Return the user id carried by a valid token."""
        return decode_token(token)

    async def who_am_i(self, repo: UserRepository, user_id: Optional[str]) -> UserResponse:
        """
        Raises:
            UnauthorizedError: no identity, or the account no longer exists
        """
        if not user_id:
            raise UnauthorizedError()
        user = await repo.find_by_id(user_id)
        if user is None:
            raise UnauthorizedError(message="User no longer exists")
        return to_public(user)

    async def public_profile(self, repo: UserRepository, user_id: str) -> PublicProfile:
        user = await repo.find_by_id(user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=user_id)
        return PublicProfile(id=user.id, full_name=user.full_name, email=user.email)


user_service = UserService()
