"""
Notes API — Storage Contract
=============================

What:  Abstract repositories every storage backend must implement.
Why:   The Notes Access Layer depends on this interface only; the relational
       and document adapters are interchangeable behind it.
How:   Concrete adapters (repositories/sql.py, repositories/mongo.py) inherit
       from NoteRepository / UserRepository and translate between their own
       row/document shape and the shared NoteResponse / UserRecord models.

Contract rules shared by both adapters:
    - Every single-note lookup or write takes the owner id and applies it in
      the same query as the note id. A note owned by someone else is simply
      not matched; adapters return None and never raise for that case.
    - Malformed ids (not a UUID / not an ObjectId) also return None.
    - Driver exceptions are translated to DatabaseError by
      `translate_backend_errors`.
"""

import enum
import functools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from notesapi.exceptions import DatabaseError, NotesAPIError
from notesapi.schemas.note import NoteResponse, NoteWithAuthor
from notesapi.schemas.user import UserRecord

logger = logging.getLogger(__name__)


class NoteSort(enum.Enum):
    """Sort orders used by the listings."""

    # Owner listing: pinned first, newest first
    OWN = "own"
    # Public listing: newest first, pin status ignored
    PUBLIC = "public"
    # Global listing: newest first, pinned as tiebreak
    ALL = "all"


@dataclass(frozen=True)
class NoteQuery:
    """
    Filter for `NoteRepository.find_many`.

    text is matched case-insensitively as a substring of title, content or
    the serialized tags. It is literal text, never a pattern.
    """
    owner_id: str
    is_public: Optional[bool] = None
    text: Optional[str] = None
    sort: NoteSort = NoteSort.OWN


def translate_backend_errors(action: str):
    """
    Decorator for adapter methods: driver errors become DatabaseError.

    The adapter class lists its driver's base exception types in
    `backend_errors`; anything else propagates unchanged.
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            try:
                return await func(self, *args, **kwargs)
            except NotesAPIError:
                raise
            except self.backend_errors as e:
                logger.error("Storage error during %s: %s", action, str(e), exc_info=True)
                raise DatabaseError(
                    context={"action": action, "error_type": type(e).__name__},
                ) from e
        return wrapper
    return decorator


class NoteRepository(ABC):
    """Persistence of notes for one request."""

    backend_errors: Tuple[type, ...] = ()

    @abstractmethod
    def is_valid_id(self, value: str) -> bool:
        """Whether `value` is a well-formed identifier for this backend."""
        ...

    @abstractmethod
    async def insert(
        self,
        owner_id: str,
        title: str,
        content: str,
        tags: List[str],
        is_pinned: bool,
        is_public: bool,
        embedding: Optional[List[float]] = None,
    ) -> NoteResponse:
        """Persist a new note and return it with generated id and timestamps."""
        ...

    @abstractmethod
    async def find_one(self, note_id: str, owner_id: str) -> Optional[NoteResponse]:
        ...

    @abstractmethod
    async def find_many(
        self, query: NoteQuery, skip: int = 0, limit: Optional[int] = None
    ) -> Tuple[List[NoteResponse], int]:
        """Return one page of matching notes and the total match count."""
        ...

    @abstractmethod
    async def update_one(
        self, note_id: str, owner_id: str, fields: Dict[str, Any]
    ) -> Optional[NoteResponse]:
        """
        Apply `fields` (snake_case NoteResponse names, plus `embedding`) and
        refresh updated_at. Returns the updated note, or None when unmatched.
        """
        ...

    @abstractmethod
    async def toggle_pin(self, note_id: str, owner_id: str) -> Optional[NoteResponse]:
        """Negate is_pinned in a single backend write."""
        ...

    @abstractmethod
    async def delete_one(self, note_id: str, owner_id: str) -> bool:
        ...

    @abstractmethod
    async def list_with_authors(self) -> List[NoteWithAuthor]:
        """Every note in the system, joined with its author's name and email."""
        ...

    @abstractmethod
    async def vector_search(
        self, owner_id: str, vector: Sequence[float], k: int
    ) -> List[Tuple[NoteResponse, float]]:
        """The caller's k notes nearest to `vector`, best first."""
        ...

    @abstractmethod
    async def ping(self) -> None:
        """Round-trip to the backend; raises DatabaseError when unreachable."""
        ...


class UserRepository(ABC):
    """Persistence of user accounts for one request."""

    backend_errors: Tuple[type, ...] = ()

    @abstractmethod
    async def insert(self, full_name: str, email: str, password_hash: str) -> UserRecord:
        """Create a user. Raises ConflictError when the email is taken."""
        ...

    @abstractmethod
    async def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        ...
