"""
ProfileHub Backend — Image Storage Service
=============================================

What:  Validates and stores uploaded profile images.
Why:   Centralizes all file system operations for uploads in one place.
How:   Checks the declared MIME type and size, writes the bytes under the
       upload directory with a timestamp-based name, returns the public URL.
Who:   Called by UserService for registration, image update and the
       standalone upload endpoint.

Naming:
    <epoch milliseconds>-<random 0..1e9><original extension>
    e.g. 1718000000123-482913004.png

    The random suffix makes same-millisecond collisions unlikely; the name is
    not checked against existing files.

Storage:
    uploads/
    ├── 1718000000123-482913004.png
    └── 1718000005512-77120391.jpg

    The directory is mounted at /uploads by main.py, so the returned URL
    `/uploads/<name>` is both the stored `imageUrl` and a working link.
"""

import logging
import random
import time
from pathlib import Path
from typing import Optional

import aiofiles

from app.config import settings
from app.exceptions import FileStorageError, InvalidFileTypeError, PayloadTooLargeError

logger = logging.getLogger(__name__)

# URL prefix the upload directory is served under
UPLOAD_URL_PREFIX = "/uploads"


class ImageService:
    """
    Stores one image per call and never touches existing files.

    Args:
        upload_dir: Override the upload directory (used in tests).
        max_file_size: Override the byte limit (used in tests).
    """

    def __init__(self, upload_dir: Optional[str] = None, max_file_size: Optional[int] = None):
        self.upload_dir = Path(upload_dir or settings.upload_dir).resolve()
        self.max_file_size = max_file_size or settings.max_file_size
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        logger.info("ImageService initialized with upload_dir=%s", self.upload_dir)

    def validate_content_type(self, content_type: Optional[str]) -> None:
        """
        Accept only declared `image/*` types.

        Raises:
            InvalidFileTypeError if the MIME type is missing or not an image.
        """
        if not content_type or not content_type.lower().startswith("image/"):
            raise InvalidFileTypeError(content_type=content_type)

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Validate the upload size against the configured maximum.

        Checks the size the client declared first, then the bytes actually
        received, since the declared size may be missing or wrong.

        Raises:
            PayloadTooLargeError
        """
        if content_length and content_length > self.max_file_size:
            raise PayloadTooLargeError(max_size=self.max_file_size, actual_size=content_length)

        if actual_size > self.max_file_size:
            raise PayloadTooLargeError(max_size=self.max_file_size, actual_size=actual_size)

    def generate_filename(self, original_filename: str) -> str:
        """Timestamp (ms) + random integer + original extension."""
        extension = Path(original_filename or "").suffix.lower()
        millis = int(time.time() * 1000)
        return f"{millis}-{random.randint(0, 10**9)}{extension}"

    async def store(self, content: bytes, filename: str) -> str:
        """
        Write image bytes to the upload directory.

        Returns:
            Public URL path of the stored file (e.g. "/uploads/<name>").

        Raises:
            FileStorageError if the write fails.
        """
        stored_name = self.generate_filename(filename)
        path = self.upload_dir / stored_name

        try:
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store image at %s: %s", path, str(e))
            raise FileStorageError(
                message=f"Error uploading image: {e}",
                context={"path": str(path), "os_error": str(e)},
            )

        logger.info("Image stored: %s (%d bytes)", stored_name, len(content))
        return f"{UPLOAD_URL_PREFIX}/{stored_name}"

    def validate(
        self,
        content: bytes,
        content_type: Optional[str],
        content_length: Optional[int] = None,
    ) -> None:
        """Type check first (cheap, no bytes needed), then size."""
        self.validate_content_type(content_type)
        self.validate_size(content_length, len(content))

    async def validate_and_store(
        self,
        filename: str,
        content: bytes,
        content_type: Optional[str],
        content_length: Optional[int] = None,
    ) -> str:
        """
        Complete validation and storage pipeline.

        Returns:
            Public URL path of the stored image.
        """
        self.validate(content, content_type, content_length)
        return await self.store(content, filename)
