"""
ProfileHub Backend — User Record Store
========================================

What:  Thin async wrapper over the `users` collection.
Why:   Keeps every Motor call in one class so the service layer works with
       plain dicts and None, and tests can swap in an in-memory collection.
How:   Each method is a single driver round-trip. Driver exceptions
       (DuplicateKeyError, ServerSelectionTimeoutError, ...) propagate
       unchanged; the service layer decides how each one maps to HTTP.

Ordering:
    find_all() uses no sort, so results come back in the collection's
    natural order, which for a plain insert-only collection is insertion order.
"""

import logging
from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument

from app.models.user import USER_INDEXES, parse_object_id

logger = logging.getLogger(__name__)


class UserStore:
    """
    Typed contract over a Motor collection of user documents.

    Args:
        collection: An AsyncIOMotorCollection (or anything exposing the same
                    coroutine methods).
    """

    def __init__(self, collection):
        self.collection = collection

    async def ensure_indexes(self) -> None:
        """Create the unique username index. Idempotent."""
        for keys, options in USER_INDEXES:
            await self.collection.create_index(keys, **options)
        logger.info("User indexes ensured on '%s'", self.collection.name)

    async def insert(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a new user document.

        Returns:
            The stored document including its assigned `_id`.

        Raises:
            pymongo.errors.DuplicateKeyError: username already taken.
        """
        stored = dict(document)
        result = await self.collection.insert_one(stored)
        stored["_id"] = result.inserted_id
        return stored

    async def find_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        oid = parse_object_id(user_id)
        if oid is None:
            return None
        return await self.collection.find_one({"_id": oid})

    async def find_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one({"username": username})

    async def find_all(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Return all users, or the first `limit` users, in natural order.

        The caller is responsible for rejecting a non-positive limit; a limit of
        0 means "no limit" to MongoDB, which is not what callers want.
        """
        cursor = self.collection.find({})
        if limit is not None:
            cursor = cursor.limit(limit)
        return await cursor.to_list(length=None)

    async def count(self) -> int:
        return await self.collection.count_documents({})

    async def update_image(self, user_id: str, image_url: str) -> Optional[Dict[str, Any]]:
        """Set `imageUrl` and return the document as it is after the update."""
        oid = parse_object_id(user_id)
        if oid is None:
            return None
        return await self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": {"imageUrl": image_url}},
            return_document=ReturnDocument.AFTER,
        )

    async def delete_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Delete a user and return the removed document, or None if absent."""
        oid = parse_object_id(user_id)
        if oid is None:
            return None
        return await self.collection.find_one_and_delete({"_id": oid})
