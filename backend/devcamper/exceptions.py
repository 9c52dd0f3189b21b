"""
DevCamper Backend: Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for every error scenario.
How:   Each exception carries a user-facing message and an optional context
       dict. Global exception handlers (registered in main.py) turn them into
       `{"success": false, "error": <message>}` bodies with the right status.
Who:   Raised by services, the authorization guard, collaborators and
       middleware; caught by the global handlers.

Exception Hierarchy:
    DevCamperError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── ForbiddenError           → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── DatabaseError            → 500 Internal Server Error
    └── UpstreamServiceError     → 500 Internal Server Error
        ├── GeocoderError
        ├── CircuitBreakerOpenError
        └── FileStorageError
"""

from typing import Any, Dict, Optional


class DevCamperError(Exception):
    """
    Base exception for all DevCamper application errors.

    Attributes:
        message:      User-facing error description (safe to return in API response)
        context:      Additional debug info (logged, never returned to the client)
        status_code:  HTTP status the global handler answers with
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(DevCamperError):
    """
    Raised when client input or a record fails validation.

    When: Store rejects a malformed/incomplete record, duplicate keys,
          photo of the wrong type or size, a second bootcamp for a publisher.
    """

    status_code = 400

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


class AuthenticationError(DevCamperError):
    """Raised when the caller could not be identified (no token, bad token, bad password)."""

    status_code = 401

    def __init__(
        self,
        message: str = "Not authorized to access this route",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(DevCamperError):
    """
    Raised when the Authorization Guard denies a mutating operation,
    or when the caller's role is not allowed on a route.

    Attributes:
        reason: Machine-readable deny reason (e.g. "not-owner", "role")
    """

    status_code = 403

    def __init__(
        self,
        message: str = "Not authorized to commit this action.",
        reason: str = "not-owner",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["reason"] = reason
        super().__init__(message=message, context=ctx)
        self.reason = reason


class NotFoundError(DevCamperError):
    """
    Raised when a requested record does not exist.

    SQLAlchemy returns None for missing rows; services convert that None into
    this exception so the global handler can answer 404.
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"{resource} not found"
            if resource_id:
                message = f"{resource} not found with id of {resource_id}"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class RateLimitExceededError(DevCamperError):
    """Raised when a client exceeds the per-IP request rate limit."""

    status_code = 429

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class DatabaseError(DevCamperError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; the original
    error is kept in `context` for the server-side log.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UpstreamServiceError(DevCamperError):
    """Base for failures of external collaborators (geocoder, blob storage)."""

    status_code = 500


class GeocoderError(UpstreamServiceError):
    """Raised when the geocoding provider fails or returns no usable result."""

    def __init__(
        self,
        message: str = "Could not geocode the given location",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class CircuitBreakerOpenError(UpstreamServiceError):
    """
    Raised when the geocoder circuit breaker is OPEN.

    CLOSED → (threshold failures) → OPEN → (recovery timeout) → HALF_OPEN
    → success → CLOSED, failure → OPEN.
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            "Geocoding service is temporarily unavailable due to repeated failures. "
            f"Please retry in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class FileStorageError(UpstreamServiceError):
    """Raised when writing or deleting a stored photo fails (disk full, permissions, I/O)."""

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
