"""
Notes API — Note SQLAlchemy Model
==================================

What:  ORM model representing the `notes` table of the relational backend.
Why:   Maps Python objects to database rows for type-safe database operations.
How:   Inherits from SQLAlchemy's DeclarativeBase; Alembic reads this for migrations.
Who:   Used by SqlNoteRepository and by Alembic for schema management.

Table Design Rationale:
    - UUID primary key: Non-sequential, so ids cannot be enumerated
    - owner_id: Foreign key to users; ON DELETE CASCADE removes a user's notes
    - tags: JSON array; substring search runs over its serialized text
    - embedding: JSON array of floats, NULL until semantic indexing has run
    - created_at / updated_at: UTC, timezone-aware

    Index (owner_id, is_pinned, created_at):
        Serves the owner listing, which filters by owner and sorts pinned
        notes first, then newest first.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from notesapi.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A user-authored note in the relational backend.

    Query Patterns:
        - Owner listing: WHERE owner_id = :owner ORDER BY is_pinned DESC, created_at DESC
        - Public listing: WHERE owner_id = :owner AND is_public ORDER BY created_at DESC
        - Single note:   WHERE id = :id AND owner_id = :owner
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    is_pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    embedding: Mapped[Optional[List[float]]] = mapped_column(
        JSON(none_as_null=True), nullable=True, default=None
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    __table_args__ = (
        Index("idx_notes_owner_pinned_created", owner_id, is_pinned.desc(), created_at.desc()),
        Index("idx_notes_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, owner_id={self.owner_id}, pinned={self.is_pinned})>"
