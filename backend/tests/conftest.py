"""
ProfileHub Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Tests run without a MongoDB server: the users collection is replaced
       by an in-memory double that implements the Motor calls UserStore makes.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── users_collection: In-memory users collection
    ├── user_store: UserStore bound to users_collection
    ├── temp_uploads: Temporary upload directory
    ├── image_service: ImageService writing to temp_uploads
    ├── sample_image_bytes: Minimal PNG for upload tests
    ├── registration_form: Valid registration fields
    └── test_client: HTTPX AsyncClient wired to a fresh app
"""

import os
import tempfile

# Override settings BEFORE any app imports
os.environ["MONGODB_URI"] = "mongodb://localhost:27017/profilehub_test"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="profilehub_test_")
os.environ["BCRYPT_ROUNDS"] = "4"  # bcrypt minimum; keeps hashing fast
os.environ["LOG_LEVEL"] = "WARNING"

import copy
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
import bson
from bson import ObjectId
from httpx import ASGITransport, AsyncClient
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.services.image_service import ImageService
from app.services.user_store import UserStore


# ══════════════════════════════════════════════════════════════════════════
# In-memory collection
# ══════════════════════════════════════════════════════════════════════════


class _InsertResult:
    def __init__(self, inserted_id: ObjectId):
        self.inserted_id = inserted_id


class _Cursor:
    """Mimics the slice of AsyncIOMotorCursor used by UserStore."""

    def __init__(self, documents: List[Dict[str, Any]]):
        self._documents = documents
        self._limit = 0

    def limit(self, n: int) -> "_Cursor":
        self._limit = n
        return self

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        docs = self._documents[: self._limit] if self._limit else self._documents
        return [copy.deepcopy(d) for d in docs]


class InMemoryUsersCollection:
    """
    Stands in for the Motor `users` collection.

    Keeps insertion order (natural order) and enforces the unique username
    index by raising DuplicateKeyError, like the real server. Inserted
    documents are BSON-encoded first, so values the driver cannot send
    (e.g. ints beyond 8 bytes) fail here too.
    """

    name = "users"

    def __init__(self):
        self.documents: List[Dict[str, Any]] = []
        self.indexes: List[Any] = []

    def _match(self, document: Dict[str, Any], query: Dict[str, Any]) -> bool:
        return all(document.get(key) == value for key, value in query.items())

    async def create_index(self, keys, **options):
        self.indexes.append((keys, options))
        return keys if isinstance(keys, str) else "_".join(k for k, _ in keys)

    async def insert_one(self, document: Dict[str, Any]) -> _InsertResult:
        # The driver encodes before sending; unencodable values fail here
        bson.encode(document)
        if any(d["username"] == document["username"] for d in self.documents):
            raise DuplicateKeyError(
                f"E11000 duplicate key error collection: users index: username_1 "
                f"dup key: {{ username: \"{document['username']}\" }}"
            )
        document.setdefault("_id", ObjectId())
        self.documents.append(copy.deepcopy(document))
        return _InsertResult(document["_id"])

    async def find_one(self, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        for document in self.documents:
            if self._match(document, query):
                return copy.deepcopy(document)
        return None

    def find(self, query: Dict[str, Any]) -> _Cursor:
        return _Cursor([d for d in self.documents if self._match(d, query)])

    async def count_documents(self, query: Dict[str, Any]) -> int:
        return sum(1 for d in self.documents if self._match(d, query))

    async def find_one_and_update(self, query, update, return_document=ReturnDocument.BEFORE):
        for document in self.documents:
            if self._match(document, query):
                before = copy.deepcopy(document)
                document.update(update.get("$set", {}))
                return copy.deepcopy(document) if return_document == ReturnDocument.AFTER else before
        return None

    async def find_one_and_delete(self, query):
        for index, document in enumerate(self.documents):
            if self._match(document, query):
                return self.documents.pop(index)
        return None


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════


@pytest.fixture
def users_collection():
    return InMemoryUsersCollection()


@pytest.fixture
def user_store(users_collection):
    return UserStore(users_collection)


@pytest.fixture
def temp_uploads(tmp_path):
    """A fresh upload directory per test (pytest cleans it up)."""
    upload_dir = tmp_path / "uploads"
    upload_dir.mkdir()
    return str(upload_dir)


@pytest.fixture
def image_service(temp_uploads):
    return ImageService(upload_dir=temp_uploads)


@pytest.fixture
def sample_image_bytes():
    """
    Minimal PNG bytes: the 8-byte signature plus an IHDR chunk header.

    Not a decodable picture; uploads are only checked by declared MIME type.
    """
    return b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"


@pytest.fixture
def registration_form():
    return {
        "username": "alice",
        "password": "pw123",
        "age": "30",
        "jobrole": "eng",
        "location": "NYC",
        "education": "BS",
    }


@pytest.fixture
def mock_database(user_store):
    """MongoDatabase stand-in exposing the in-memory store."""
    database = MagicMock()
    database.users = user_store
    database.ping = AsyncMock(return_value=True)
    return database


@pytest_asyncio.fixture
async def test_client(mock_database):
    """
    HTTPX AsyncClient talking to a fresh app through ASGITransport.

    ASGITransport does not run the lifespan, so the handles it would create
    are attached to app.state here instead.
    """
    from app.main import create_app

    app = create_app()
    app.state.database = mock_database

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
