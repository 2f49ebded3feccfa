"""
Notes API — Custom Exception Hierarchy
=======================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and user-friendly messages, without leaking internals.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and repositories; caught by global handlers.

Exception Hierarchy:
    NotesAPIError (base)
    ├── ValidationError              → 400 Bad Request
    ├── UnauthorizedError            → 401 Unauthorized
    │   └── InvalidCredentialsError  → 401 Unauthorized
    ├── NotFoundError                → 404 Not Found
    ├── ConflictError                → 409 Conflict
    ├── DatabaseError                → 500 Internal Server Error
    └── ExternalServiceError         → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class NotesAPIError(Exception):
    """
    Base exception for all Notes API errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NotesAPIError):
    """
    Raised when client input fails validation.

    When:    Missing title/content, tags that are not a list, empty search query.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UnauthorizedError(NotesAPIError):
    """
    Raised when no caller identity is available.

    When:    Missing, malformed or expired bearer credential.
    HTTP:    401 Unauthorized

    Distinct from NotFoundError: a caller with no identity at all is told so,
    while a caller asking for someone else's note is told it does not exist.
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidCredentialsError(UnauthorizedError):
    """
    Raised when a login attempt fails.

    The message is identical for an unknown email and a wrong password.
    """

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Invalid credentials", context=context)


class NotFoundError(NotesAPIError):
    """
    Raised when a requested resource does not exist or is not owned by the caller.

    HTTP:    404 Not Found

    The two cases share one message so the response never reveals whether
    a note exists under another account.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(NotesAPIError):
    """
    Raised when a write would violate a uniqueness rule.

    When:    Registering an email that is already in use.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(NotesAPIError):
    """
    Raised when a storage backend call fails.

    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic. Driver details
        (SQL, constraint names, server addresses) are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ExternalServiceError(NotesAPIError):
    """
    Raised when the embedding provider fails or is not configured.

    HTTP:    500 Internal Server Error
    No retry is attempted; the caller may resubmit.
    """

    def __init__(
        self,
        message: str = "The semantic search service is unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
