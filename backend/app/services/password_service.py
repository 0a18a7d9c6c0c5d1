"""
ProfileHub Backend — Password Service
=======================================

What:  Hashes new passwords and checks login attempts against stored hashes.
How:   passlib CryptContext with the bcrypt scheme; the cost factor comes from
       BCRYPT_ROUNDS. bcrypt is CPU-bound on purpose, so both calls run in
       Starlette's thread pool and the event loop keeps serving other requests.
"""

from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool

from app.config import settings


class PasswordService:
    """
    bcrypt hashing and verification.

    Args:
        rounds: bcrypt cost factor (4-16). Tests use 4 to stay fast.
    """

    def __init__(self, rounds: int = settings.bcrypt_rounds):
        self.context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    async def hash(self, password: str) -> str:
        """Salted hash; a fresh salt is generated on every call."""
        return await run_in_threadpool(self.context.hash, password)

    async def verify(self, password: str, hashed: str) -> bool:
        # passlib compares in constant time
        return await run_in_threadpool(self.context.verify, password, hashed)


# Singleton instance, shared by every UserService
password_service = PasswordService()
