"""
Notes API — User SQLAlchemy Model
==================================

What:  ORM model representing the `users` table of the relational backend.
Why:   Owners of notes; the email column carries the uniqueness rule for accounts.

Emails are stored exactly as submitted. Uniqueness is therefore case-sensitive.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from notesapi.database import Base
from notesapi.models.note import utcnow


class User(Base):
    """An account that owns notes."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)

    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)

    # Never serialized; see schemas.user.UserResponse
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id})>"
