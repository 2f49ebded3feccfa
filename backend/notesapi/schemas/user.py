"""
Notes API — Account Schemas
============================

What:  Request/response models for registration, login and profiles.
Why:   No response model carries a password or hash field, so neither can
       leak through serialization.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CAMEL_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    from_attributes=True,
)


class RegisterRequest(BaseModel):
    model_config = CAMEL_CONFIG

    full_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserResponse(BaseModel):
    """Public account fields. Returned by register, profile and me."""
    model_config = CAMEL_CONFIG

    id: str
    full_name: str
    email: str
    created_at: datetime


class UserRecord(UserResponse):
    """Repository-level user including the stored hash. Never returned by routes."""
    password_hash: str = Field(repr=False)


class PublicProfile(BaseModel):
    model_config = CAMEL_CONFIG

    id: str
    full_name: str
    email: str


class TokenResponse(BaseModel):
    error: bool = False
    message: str = "Login successful"
    token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Seconds until the token expires")


class CookieLoginResponse(BaseModel):
    error: bool = False
    message: str = "Login successful"
    user: UserResponse


class TokenVerification(BaseModel):
    model_config = CAMEL_CONFIG

    error: bool = False
    user_id: str
    message: str = "Token is valid"


class UserEnvelope(BaseModel):
    error: bool = False
    user: UserResponse
    message: Optional[str] = None


class ProfileEnvelope(BaseModel):
    error: bool = False
    user: PublicProfile
