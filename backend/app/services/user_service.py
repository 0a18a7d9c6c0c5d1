"""
ProfileHub Backend — User Service (Business Logic Orchestrator)
=================================================================

What:  Implements every users operation: register, login, list, get,
       update image, delete, standalone upload.
Why:   Keeps HTTP out of the business rules; routes only unpack the request
       and return what this service gives back.
How:   Composes UserStore (persistence), ImageService (uploads) and
       PasswordService (hashing). Outcomes become response schemas; failures
       become application exceptions that the global handlers turn into
       status codes.

Registration flow (POST /api/users/):
    ┌──────────┐   ┌────────────┐   ┌──────────┐   ┌──────────┐   ┌─────────┐
    │  Image   │──▶│  Required  │──▶│  Hash    │──▶│  Store   │──▶│ Insert  │
    │  checks  │   │  fields    │   │ password │   │  image   │   │  user   │
    └──────────┘   └────────────┘   └──────────┘   └──────────┘   └─────────┘

    Image type/size are checked first so a bad upload is rejected before any
    other work. The image is written only after the form is known to be
    complete. A failed insert leaves the written image on disk.

Error mapping per operation (store failures):
    register       → ValidationError  "Error creating user: ..."       (400)
    login          → DatabaseError    "Login error: ..."               (500)
    list           → DatabaseError    "Error fetching users: ..."      (500)
    get            → DatabaseError    "Error fetching user: ..."       (500)
    update image   → DatabaseError    "Error uploading profile image: ..." (500)
    delete         → DatabaseError    "Error deleting user: ..."       (500)
"""

import logging
from typing import List, Optional

from bson.errors import InvalidDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.exceptions import DatabaseError, NotFoundError, ValidationError
from app.models.user import build_user_document
from app.schemas.user import (
    ImageUpdateResponse,
    ListUsersQuery,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterForm,
    UploadResponse,
    UserResponse,
)
from app.services.image_service import ImageService
from app.services.password_service import PasswordService, password_service
from app.services.user_store import UserStore

logger = logging.getLogger(__name__)


class ImageUpload:
    """
    An uploaded file, already read into memory.

    Decouples the service from FastAPI's UploadFile so it can be tested with
    plain bytes.
    """

    def __init__(
        self,
        filename: str,
        content: bytes,
        content_type: Optional[str],
        size: Optional[int] = None,
    ):
        self.filename = filename
        self.content = content
        self.content_type = content_type
        self.size = size


class UserService:
    """
    Business logic layer for user operations.

    A new instance is built per request from the process-wide store handle,
    so there is no state shared between concurrent requests beyond the
    database itself.
    """

    def __init__(
        self,
        store: UserStore,
        images: ImageService,
        passwords: PasswordService = password_service,
    ):
        self.store = store
        self.images = images
        self.passwords = passwords

    # ── Uploads ───────────────────────────────────────────────────────────

    async def upload_image(self, image: Optional[ImageUpload]) -> UploadResponse:
        """Store an image without attaching it to any user."""
        if image is None:
            raise ValidationError(message="No file uploaded", field="image")

        image_url = await self.images.validate_and_store(
            filename=image.filename,
            content=image.content,
            content_type=image.content_type,
            content_length=image.size,
        )
        return UploadResponse(imageUrl=image_url)

    # ── Registration ──────────────────────────────────────────────────────

    async def register(self, form: RegisterForm, image: Optional[ImageUpload] = None) -> UserResponse:
        """
        Create a user from form fields and an optional profile image.

        Raises:
            InvalidFileTypeError / PayloadTooLargeError: bad image
            ValidationError: missing fields, non-numeric age, duplicate
                             username, or any other store failure
        """
        if image is not None:
            self.images.validate(image.content, image.content_type, image.size)

        missing = form.missing_fields()
        if missing:
            raise ValidationError(
                message="Missing required fields",
                context={"missing": missing},
            )

        try:
            age = form.parsed_age()
        except ValueError as e:
            raise ValidationError(message=f"Error creating user: {e}", field="age")

        password_hash = await self.passwords.hash(form.password)

        image_url = None
        if image is not None:
            image_url = await self.images.store(image.content, image.filename)

        document = build_user_document(
            username=form.username,
            password_hash=password_hash,
            age=age,
            jobrole=form.jobrole,
            location=form.location,
            education=form.education,
            image_url=image_url,
        )

        try:
            stored = await self.store.insert(document)
        except DuplicateKeyError:
            logger.info("Registration rejected, username taken: %s", form.username)
            raise ValidationError(
                message=f"Error creating user: username '{form.username}' already exists",
                field="username",
            )
        except (PyMongoError, InvalidDocument, OverflowError) as e:
            # InvalidDocument and OverflowError are raised while encoding to BSON
            logger.error("Failed to insert user %s: %s", form.username, str(e))
            raise ValidationError(
                message=f"Error creating user: {e}",
                context={"error_type": type(e).__name__},
            )

        logger.info("User created: %s (%s)", form.username, stored["_id"])
        return UserResponse.from_document(stored)

    # ── Login ─────────────────────────────────────────────────────────────

    async def login(self, credentials: LoginRequest) -> LoginResponse:
        """
        Check a username/password pair.

        Both an unknown username and a wrong password raise NotFoundError
        (404), with different messages.
        """
        if credentials.missing_fields():
            raise ValidationError(
                message="Missing required fields",
                context={"missing": credentials.missing_fields()},
            )

        try:
            document = await self.store.find_by_username(credentials.username)
            if document is None:
                raise NotFoundError(message=f"User {credentials.username} not found")

            if not await self.passwords.verify(credentials.password, document["password"]):
                raise NotFoundError(message="Invalid password")

        except NotFoundError:
            raise
        except Exception as e:
            logger.error("Login failed for %s: %s", credentials.username, str(e), exc_info=True)
            raise DatabaseError(message=f"Login error: {e}")

        logger.info("Login succeeded: %s", credentials.username)
        return LoginResponse(user=UserResponse.from_document(document))

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_users(self, query: ListUsersQuery) -> List[UserResponse]:
        """
        All users, or the first `query.limit` in store order.

        Raises:
            NotFoundError: limit exceeds the number of stored users.
        """
        try:
            if query.limit is None:
                documents = await self.store.find_all()
            else:
                total = await self.store.count()
                if query.limit > total:
                    raise NotFoundError(message=f"Only {total} users found")
                documents = await self.store.find_all(limit=query.limit)
        except NotFoundError:
            raise
        except PyMongoError as e:
            logger.error("Error listing users: %s", str(e))
            raise DatabaseError(message=f"Error fetching users: {e}")

        return [UserResponse.from_document(doc) for doc in documents]

    async def get_user(self, user_id: str) -> UserResponse:
        try:
            document = await self.store.find_by_id(user_id)
        except PyMongoError as e:
            logger.error("Error fetching user %s: %s", user_id, str(e))
            raise DatabaseError(message=f"Error fetching user: {e}")

        if document is None:
            raise NotFoundError(message="User not found", context={"user_id": user_id})
        return UserResponse.from_document(document)

    # ── Writes ────────────────────────────────────────────────────────────

    async def update_image(self, user_id: str, image: Optional[ImageUpload]) -> ImageUpdateResponse:
        """
        Replace a user's profile image. Only `imageUrl` changes.

        The new file is written before the user is looked up, so an unknown id
        still leaves the uploaded file on disk.
        """
        if image is None:
            raise ValidationError(message="No file uploaded", field="image")

        image_url = await self.images.validate_and_store(
            filename=image.filename,
            content=image.content,
            content_type=image.content_type,
            content_length=image.size,
        )

        try:
            document = await self.store.update_image(user_id, image_url)
        except PyMongoError as e:
            logger.error("Error updating image for user %s: %s", user_id, str(e))
            raise DatabaseError(message=f"Error uploading profile image: {e}")

        if document is None:
            raise NotFoundError(message="User not found", context={"user_id": user_id})

        logger.info("Profile image updated for user %s: %s", user_id, image_url)
        return ImageUpdateResponse(imageUrl=image_url, user=UserResponse.from_document(document))

    async def delete_user(self, user_id: str) -> MessageResponse:
        try:
            document = await self.store.delete_by_id(user_id)
        except PyMongoError as e:
            logger.error("Error deleting user %s: %s", user_id, str(e))
            raise DatabaseError(message=f"Error deleting user: {e}")

        if document is None:
            raise NotFoundError(message="User not found", context={"user_id": user_id})

        logger.info("User deleted: %s (%s)", document.get("username"), user_id)
        return MessageResponse(message="User deleted")
