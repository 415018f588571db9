"""
Users API: Custom Exception Hierarchy
======================================

What:  Application-specific exceptions for each error scenario.
How:   Each exception carries a client-safe message and an optional context
       dict. Global exception handlers (registered in main.py) turn them into
       JSON error responses with the matching HTTP status code.
Who:   Raised by the service layer and the application lifespan.

Exception Hierarchy:
    UsersApiError (base)
    ├── ValidationError   → 400 Bad Request
    ├── NotFoundError     → 404 Not Found
    ├── DatabaseError     → 500 Internal Server Error
    └── StartupError      → fatal, raised before any request is served
"""

from typing import Any, Dict, Optional


class UsersApiError(Exception):
    """
    Base exception for all Users API errors.

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


class ValidationError(UsersApiError):
    """
    Raised when client input fails validation.

    When:    Missing or empty required field on create.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        fields: Optional[list] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if fields:
            ctx["fields"] = list(fields)
        super().__init__(message=message, context=ctx)
        self.fields = list(fields or [])


class NotFoundError(UsersApiError):
    """
    Raised when a requested resource does not exist.

    When:    GET/PUT/DELETE /api/users/{id} with an id that has no row.
    HTTP:    404 Not Found

    SQLAlchemy returns None (or an empty RETURNING set) for missing rows; the
    service layer converts that into this exception.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class DatabaseError(UsersApiError):
    """
    Raised when a database operation fails.

    When:    Connection lost, constraint violation, driver error.
    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. The original
    exception type goes into `context` and is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StartupError(UsersApiError):
    """
    Raised when the service cannot be brought up (schema creation failed).

    Never mapped to an HTTP response: the lifespan aborts and the server
    process exits with a non-zero status.
    """

    def __init__(
        self,
        message: str = "Application startup failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
