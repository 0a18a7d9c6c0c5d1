"""
ProfileHub Backend — Database Connection Management
=====================================================

What:  Owns the MongoDB client for the lifetime of the process.
Why:   One explicit handle, created at startup and closed at shutdown, instead
       of a module-level connection that every module reaches into.
How:   MongoDatabase wraps an AsyncIOMotorClient. The FastAPI lifespan builds
       it, calls connect(), and stores it on app.state; route dependencies read
       it back from the request.

Connection failure at startup is logged, not fatal. Motor reconnects lazily,
so once the server becomes reachable the same handle starts working.
"""

import logging
from typing import Optional

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.models.user import USERS_COLLECTION
from app.services.user_store import UserStore

logger = logging.getLogger(__name__)


class MongoDatabase:
    """
    Process-wide MongoDB handle.

    Lifecycle:
        1. __init__: stores connection settings (no I/O)
        2. connect(): creates the client, pings the server, ensures indexes
        3. users: UserStore bound to the `users` collection
        4. close(): closes all pooled connections
    """

    def __init__(self, uri: str, default_database: str, timeout_ms: int = 5000):
        self.uri = uri
        self.default_database = default_database
        self.timeout_ms = timeout_ms
        self.client: Optional[AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None
        self._users: Optional[UserStore] = None

    async def connect(self) -> bool:
        """
        Open the client and verify the server is reachable.

        Returns:
            True if the ping and index creation succeeded, False otherwise.
            The client is kept either way.
        """
        self.client = AsyncIOMotorClient(
            self.uri,
            serverSelectionTimeoutMS=self.timeout_ms,
        )
        # URI path wins; fall back to the configured name
        self.db = self.client.get_default_database(default=self.default_database)
        self._users = UserStore(self.db[USERS_COLLECTION])

        try:
            await self.client.admin.command("ping")
            await self._users.ensure_indexes()
        except PyMongoError as e:
            logger.error("MongoDB connection error: %s", str(e))
            return False

        logger.info("MongoDB connected: database=%s", self.db.name)
        return True

    @property
    def users(self) -> UserStore:
        if self._users is None:
            raise RuntimeError("MongoDatabase.connect() has not been called")
        return self._users

    async def ping(self) -> bool:
        """Lightweight reachability check used by the health endpoint."""
        if self.client is None:
            return False
        try:
            await self.client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning("MongoDB ping failed: %s", str(e))
            return False

    async def close(self) -> None:
        if self.client is not None:
            self.client.close()
            logger.info("MongoDB connection closed")
        self.client = None
        self.db = None
        self._users = None


# ── Request Dependencies ──────────────────────────────────────────────────

def get_database(request: Request) -> MongoDatabase:
    """FastAPI dependency returning the handle created in the lifespan."""
    return request.app.state.database


def get_user_store(request: Request) -> UserStore:
    """FastAPI dependency returning the users collection wrapper."""
    return request.app.state.database.users
