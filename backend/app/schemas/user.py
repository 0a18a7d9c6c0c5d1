"""
ProfileHub Backend — Pydantic Request/Response Schemas
========================================================

What:  Pydantic models defining the API contract for the users endpoints.
Why:   Each operation gets an explicit input and output type, validated at
       the boundary, instead of passing raw form dicts and Mongo documents
       around.
How:   Request models are built by the route layer from form fields, JSON
       bodies and query strings. Response models are built by UserService
       from stored documents.

Presence checks stay out of Pydantic on purpose: a missing field must produce
400 "Missing required fields", not FastAPI's 422 with per-field details. So
request models accept None everywhere and expose `missing_fields()`.
"""

import math
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import QueryParams

from app.exceptions import NotFoundError, ValidationError
from app.models.user import REQUIRED_FIELDS

# Largest integers BSON can encode (int64)
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class RegisterForm(BaseModel):
    """
    Registration form fields (multipart or urlencoded).

    All values arrive as strings. `age` is converted by `parsed_age()` so a
    non-numeric age is reported as a user-creation error rather than a schema
    error.
    """
    username: Optional[str] = None
    password: Optional[str] = None
    age: Optional[str] = None
    jobrole: Optional[str] = None
    location: Optional[str] = None
    education: Optional[str] = None

    def missing_fields(self) -> List[str]:
        return [name for name in REQUIRED_FIELDS if not getattr(self, name)]

    def parsed_age(self) -> Union[int, float]:
        """
        Parse `age` as a number.

        Integral values inside BSON's int64 range become int; everything else
        stays a float (stored as a BSON double).

        Raises:
            ValueError if the value is not a finite number.
        """
        value = float(self.age.strip())
        if not math.isfinite(value):
            raise ValueError(f"age must be a finite number, got '{self.age}'")
        if value.is_integer() and INT64_MIN <= value <= INT64_MAX:
            return int(value)
        return value


class LoginRequest(BaseModel):
    """Credentials for POST /api/users/login/ (JSON or form-encoded body)."""
    username: Optional[str] = None
    password: Optional[str] = None

    def missing_fields(self) -> List[str]:
        return [name for name in ("username", "password") if not getattr(self, name)]

    @classmethod
    def from_payload(cls, payload: Any) -> "LoginRequest":
        """
        Build from a decoded JSON body or submitted form.

        Raises:
            ValidationError("Invalid request body") if the payload is not an
            object or a field is not a string.
        """
        if not isinstance(payload, Mapping):
            raise ValidationError(message="Invalid request body", field="body")
        try:
            return cls(username=payload.get("username"), password=payload.get("password"))
        except PydanticValidationError as e:
            raise ValidationError(
                message="Invalid request body",
                context={"errors": e.errors(include_url=False)},
            )


class ListUsersQuery(BaseModel):
    """
    Query string for GET /api/users/.

    Only `limit` is allowed. Built with `from_query_params()`, which enforces
    the parameter whitelist and the limit rules:

        absent / empty  → no limit (all users)
        positive int    → limit
        anything else   → NotFoundError("Limit should be a number > 0")
    """
    limit: Optional[int] = Field(default=None, ge=1)

    ALLOWED_PARAMS: ClassVar[Tuple[str, ...]] = ("limit",)

    @classmethod
    def from_query_params(cls, params: QueryParams) -> "ListUsersQuery":
        if any(key not in cls.ALLOWED_PARAMS for key in params.keys()):
            raise ValidationError(message="Invalid query parameter", field="query")

        values = params.getlist("limit")
        if not values or values == [""]:
            return cls()

        value = math.nan
        # A repeated ?limit= is rejected, not resolved to one of its values
        if len(values) == 1:
            try:
                value = float(values[0])
            except ValueError:
                pass

        if not math.isfinite(value) or value <= 0 or not value.is_integer():
            raise NotFoundError(
                message="Limit should be a number > 0",
                context={"limit": values},
            )
        return cls(limit=int(value))


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class UserResponse(BaseModel):
    """
    A stored user as returned by every endpoint that returns users.

    `password` is the bcrypt hash, never the plaintext. It is still returned,
    matching the existing API clients.
    """
    id: str = Field(description="User identifier (24-character hex ObjectId)")
    username: str
    password: str = Field(description="bcrypt hash of the user's password")
    age: Union[int, float]
    jobrole: str
    location: str
    education: str
    imageUrl: Optional[str] = Field(default=None, description="URL path of the profile image")

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "UserResponse":
        return cls(
            id=str(document["_id"]),
            username=document["username"],
            password=document["password"],
            age=document["age"],
            jobrole=document["jobrole"],
            location=document["location"],
            education=document["education"],
            imageUrl=document.get("imageUrl"),
        )


class LoginResponse(BaseModel):
    message: str = "Login successful"
    user: UserResponse


class UploadResponse(BaseModel):
    """Returned by the standalone image upload endpoint."""
    message: str = "File uploaded successfully"
    imageUrl: str


class ImageUpdateResponse(BaseModel):
    """Returned after replacing a user's profile image."""
    message: str = "Profile image uploaded successfully"
    imageUrl: str
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Every error body: a single human-readable message."""
    message: str = Field(description="Human-readable error description")


class HealthResponse(BaseModel):
    """Returned by GET /health."""
    status: str = Field(description="Overall service status: healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
