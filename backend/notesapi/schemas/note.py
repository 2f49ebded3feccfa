"""
Notes API — Note Request/Response Schemas
==========================================

What:  Pydantic models defining the note API contract.
Why:   Input parsing, automatic serialization, and OpenAPI doc generation.
How:   Fields are snake_case in Python and camelCase on the wire
       (`is_pinned` ↔ `isPinned`). Both spellings are accepted on input.
Who:   Returned by NoteService and the repositories; parsed by route handlers.

Design Decision:
    Request models leave title/content optional so the service layer owns the
    "required, non-empty" rule and reports it the same way regardless of which
    route (or test) called it.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CAMEL_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    from_attributes=True,
)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(BaseModel):
    """
    What:  Full representation of a note, identical for both backends.
    Why:   The embedding vector is deliberately absent; it is internal data.
    """
    model_config = CAMEL_CONFIG

    id: str = Field(description="Storage-generated note identifier")
    title: str
    content: str
    tags: List[str] = Field(default_factory=list)
    is_pinned: bool = False
    is_public: bool = False
    owner_id: str = Field(description="Identifier of the owning user")
    created_at: datetime
    updated_at: Optional[datetime] = None


class NoteAuthor(BaseModel):
    model_config = CAMEL_CONFIG

    name: Optional[str] = None
    email: Optional[str] = None


class NoteWithAuthor(NoteResponse):
    """A note joined with minimal author info, returned by the global listing."""
    author: NoteAuthor


class NotePage(BaseModel):
    """
    What:  Paginated listing envelope.

    Pagination contract:
        page ≥ 1, 1 ≤ limit ≤ 100, totalPages = max(1, ceil(total / limit))
    """
    model_config = CAMEL_CONFIG

    error: bool = False
    items: List[NoteResponse]
    page: int
    limit: int
    total: int
    total_pages: int


class ScoredNote(BaseModel):
    model_config = CAMEL_CONFIG

    note: NoteResponse
    score: float = Field(description="Similarity score reported by the backend")


class SemanticSearchResponse(BaseModel):
    model_config = CAMEL_CONFIG

    error: bool = False
    results: List[ScoredNote]


class MessageResponse(BaseModel):
    error: bool = False
    message: str


class NoteEnvelope(BaseModel):
    """Single-note response: `{"error": false, "note": {...}, "message": ...}`."""
    error: bool = False
    note: NoteResponse
    message: Optional[str] = None


class NoteListEnvelope(BaseModel):
    error: bool = False
    notes: List[NoteResponse]
    message: Optional[str] = None


class AuthoredNoteListEnvelope(BaseModel):
    error: bool = False
    notes: List[NoteWithAuthor]


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NoteCreate(BaseModel):
    """Body of POST /add-note and POST /notes."""
    model_config = CAMEL_CONFIG

    title: Optional[str] = None
    content: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_pinned: bool = False
    is_public: bool = False
    # Only read by the unscoped POST /notes route
    owner_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("ownerId", "userId", "owner_id", "user_id"),
    )


class NoteUpdate(BaseModel):
    """
    Body of PUT /edit-note/{id} and PUT /notes/{id}.

    Merge-patch: only keys present in the JSON body are applied. Callers use
    `model_dump(exclude_unset=True)` to tell "omitted" from "set to false".
    """
    model_config = CAMEL_CONFIG

    title: Optional[str] = None
    content: Optional[str] = None
    tags: Optional[List[str]] = None
    is_pinned: Optional[bool] = None


class TagsUpdate(BaseModel):
    tags: List[str]


class VisibilityUpdate(BaseModel):
    model_config = CAMEL_CONFIG

    is_public: bool


class SemanticSearchRequest(BaseModel):
    query: Optional[str] = None
    limit: int = Field(default=5, ge=1, le=50)


# ══════════════════════════════════════════════════════════════════════════
# Error & Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error body for all API errors.

    Example:
        {
            "error": true,
            "code": "not_found",
            "message": "Note not found",
            "request_id": "a1b2c3d4"
        }
    """
    error: bool = True
    code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = None
    request_id: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str
    storage_backend: str
    database: str = Field(description="Storage connectivity: connected, disconnected")
    embeddings: str = Field(description="Embedding provider: enabled, disabled")
    uptime_seconds: float
