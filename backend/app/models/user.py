"""
ProfileHub Backend — User Document Model
==========================================

What:  Shape of a document in the `users` MongoDB collection.
Why:   MongoDB is schemaless; this module is the single place that knows the
       field names, which fields are required, and how ids are parsed.
Who:   Used by UserStore for persistence and by UserService to build documents.

Document layout:
    {
        "_id":       ObjectId,   assigned by MongoDB on insert, never changes
        "username":  str,        unique (enforced by a unique index)
        "password":  str,        bcrypt hash, never the plaintext
        "age":       int|float,
        "jobrole":   str,
        "location":  str,
        "education": str,
        "imageUrl":  str         optional, e.g. "/uploads/1700000000000-42.png"
    }
"""

from typing import Any, Dict, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId

USERS_COLLECTION = "users"

# Fields the client must supply on registration (image is optional)
REQUIRED_FIELDS = ("username", "password", "age", "jobrole", "location", "education")

# Index specs applied at startup: (keys, options)
USER_INDEXES = [
    ("username", {"unique": True}),
]


def build_user_document(
    username: str,
    password_hash: str,
    age: Union[int, float],
    jobrole: str,
    location: str,
    education: str,
    image_url: Optional[str] = None,
) -> Dict[str, Any]:
    """Assemble a new user document. `imageUrl` is omitted when no image was uploaded."""
    document: Dict[str, Any] = {
        "username": username,
        "password": password_hash,
        "age": age,
        "jobrole": jobrole,
        "location": location,
        "education": education,
    }
    if image_url:
        document["imageUrl"] = image_url
    return document


def parse_object_id(value: Any) -> Optional[ObjectId]:
    """
    Convert a path parameter into an ObjectId.

    Returns None for anything that is not a valid 24-hex id, so callers can
    treat a malformed id exactly like an id that does not exist.
    """
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None
