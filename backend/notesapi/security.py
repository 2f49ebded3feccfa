"""
Notes API — Credentials
========================

What:  Password hashing and bearer-token issue/verification.
How:   passlib CryptContext for hashes (schemes from PASSWORD_SCHEMES, the
       first one hashes new passwords) and python-jose for HS256 JWTs whose
       `sub` claim is the user id.

Security Note:
    Nothing in this module logs a password, a hash or a token.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from notesapi.config import settings
from notesapi.exceptions import UnauthorizedError

# deprecated="auto": hashes made with a later scheme in the list still verify
pwd_context = CryptContext(schemes=settings.password_schemes_list, deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except (ValueError, TypeError):
        # Unrecognized or corrupt stored hash
        return False


def dummy_verify() -> None:
    """Spend the time of one verification, for logins with an unknown email."""
    pwd_context.dummy_verify()


def create_access_token(subject: str, expires_minutes: Optional[int] = None) -> Tuple[str, int]:
    """
    Issue a signed token for `subject`.

    Returns:
        (token, lifetime in seconds)
    """
    minutes = expires_minutes or settings.jwt_expire_minutes
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(subject),
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
    }
    token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return token, minutes * 60


def decode_token(token: Optional[str]) -> str:
    """
    Verify a token and return its subject (the user id).

    Raises:
        UnauthorizedError: missing, malformed, badly signed or expired token
    """
    if not token:
        raise UnauthorizedError()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as e:
        raise UnauthorizedError(message="Token has expired") from e
    except JWTError as e:
        raise UnauthorizedError(message="Invalid token") from e

    subject = payload.get("sub")
    if not subject or not isinstance(subject, str):
        raise UnauthorizedError(message="Invalid token")
    return subject
