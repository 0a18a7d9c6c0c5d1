"""
ProfileHub Backend — Custom Exception Hierarchy
=================================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Services raise these instead of building HTTP responses; global
       exception handlers (registered in main.py) translate each type into a
       status code and a `{"message": ...}` JSON body.
How:   Each exception class carries a message and optional context dict.
       The message is what the client sees; the context is logged only.

Exception Hierarchy:
    ProfileHubError (base)
    ├── ValidationError          → 400 Bad Request
    │   └── InvalidFileTypeError → 400 Bad Request
    ├── PayloadTooLargeError     → 413 Payload Too Large
    ├── NotFoundError            → 404 Not Found
    ├── FileStorageError         → 500 Internal Server Error
    └── DatabaseError            → 500 Internal Server Error

Note on 404:
    A wrong password is reported as NotFoundError, the same status as an
    unknown username. The two cases still carry different messages.
"""

from typing import Any, Dict, Optional


class ProfileHubError(Exception):
    """
    Base exception for all ProfileHub application errors.

    Attributes:
        message:  User-facing error description (returned in the API response)
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


class ValidationError(ProfileHubError):
    """
    Raised when client input fails validation.

    When:    Missing required fields, unknown query parameters, no file uploaded,
             or the store rejecting a new user (duplicate username, bad age).
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


class InvalidFileTypeError(ValidationError):
    """Raised when an upload's declared MIME type is not `image/*`."""

    def __init__(
        self,
        content_type: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["content_type"] = content_type
        super().__init__(message="Only image files are allowed!", field="image", context=ctx)
        self.content_type = content_type


class PayloadTooLargeError(ProfileHubError):
    """
    Raised when an uploaded image exceeds the configured size limit.

    HTTP:    413 Payload Too Large
    """

    def __init__(
        self,
        max_size: int,
        actual_size: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        max_mb = max_size / (1024 * 1024)
        message = f"File too large. Maximum size is {max_mb:g}MB."
        ctx = context or {}
        ctx["max_size"] = max_size
        if actual_size is not None:
            ctx["actual_size"] = actual_size
        super().__init__(message=message, context=ctx)
        self.max_size = max_size


class NotFoundError(ProfileHubError):
    """
    Raised when a requested resource does not exist.

    When:    Unknown user id, unknown username at login, wrong password,
             or a list limit larger than the number of stored users.
    HTTP:    404 Not Found

    The store returns None for missing records; services convert that into
    this exception so routes never deal with None.
    """

    def __init__(
        self,
        message: str = "User not found",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(ProfileHubError):
    """
    Raised when writing an uploaded image to disk fails.

    When:    Disk full, permission denied, directory not writable, I/O error.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(ProfileHubError):
    """
    Raised when a store operation fails unexpectedly.

    When:    Connection lost, server selection timeout, write errors.
    HTTP:    500 Internal Server Error

    The message includes the driver's error text, prefixed with the
    operation that failed (e.g. "Error fetching users: ...").
    """

    def __init__(
        self,
        message: str = "A database error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
