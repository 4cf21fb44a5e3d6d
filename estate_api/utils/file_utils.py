"""
File upload utilities for image validation and naming.
Provides the checks shared by avatar and listing-image uploads.
"""

import io
import mimetypes
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from PIL import Image, UnidentifiedImageError
from fastapi import UploadFile

from estate_api.config import get_settings
from estate_api.utils.exceptions import (
    FileSizeExceededError,
    FileUploadError,
    UnsupportedFileTypeError,
)

settings = get_settings()


@dataclass
class ValidatedImage:
    """An upload that passed validation, read fully into memory."""
    content: bytes
    content_type: str
    extension: str
    width: int
    height: int

    @property
    def size(self) -> int:
        return len(self.content)


class FileValidator:
    """Utility class for file validation operations."""

    PIL_EXTENSIONS = {
        "JPEG": ".jpg",
        "PNG": ".png",
        "WEBP": ".webp",
        "GIF": ".gif",
        "BMP": ".bmp",
    }

    @classmethod
    def validate_mime_type(cls, mime_type: Optional[str]) -> str:
        """Only ``image/*`` content types are accepted."""
        if not mime_type or not mime_type.lower().startswith("image/"):
            raise UnsupportedFileTypeError(mime_type)
        return mime_type.lower()

    @classmethod
    def validate_file_size(cls, file_size: int, max_size: Optional[int] = None) -> int:
        """
        Validate file size.

        Raises:
            FileUploadError: If the file is empty
            FileSizeExceededError: If file size exceeds limit
        """
        if file_size <= 0:
            raise FileUploadError("File is empty")

        max_allowed = max_size or settings.max_upload_size
        if file_size > max_allowed:
            raise FileSizeExceededError(file_size, max_allowed)

        return file_size

    @classmethod
    def resolve_extension(cls, filename: Optional[str], pil_format: Optional[str], mime_type: str) -> str:
        """Prefer the client's extension, then the decoded format, then the MIME type."""
        if filename:
            suffix = Path(filename).suffix.lower()
            if suffix:
                return suffix
        if pil_format and pil_format in cls.PIL_EXTENSIONS:
            return cls.PIL_EXTENSIONS[pil_format]
        return mimetypes.guess_extension(mime_type) or ""

    @classmethod
    async def validate_upload_file(cls, file: UploadFile, max_size: Optional[int] = None) -> ValidatedImage:
        """
        Comprehensive validation of an uploaded image.

        Args:
            file: FastAPI UploadFile object
            max_size: Optional override of the configured size limit

        Returns:
            ValidatedImage carrying the bytes and metadata

        Raises:
            UnsupportedFileTypeError, FileSizeExceededError, FileUploadError
        """
        mime_type = cls.validate_mime_type(file.content_type)

        await file.seek(0)
        content = await file.read()
        await file.seek(0)

        cls.validate_file_size(len(content), max_size)

        try:
            with Image.open(io.BytesIO(content)) as img:
                img.verify()
                pil_format = img.format
                width, height = img.size
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise FileUploadError(f"Invalid image file {file.filename!r}: {e}")

        return ValidatedImage(
            content=content,
            content_type=mime_type,
            extension=cls.resolve_extension(file.filename, pil_format, mime_type),
            width=width,
            height=height,
        )


def generate_unique_filename(extension: str) -> str:
    """UUID-based object name keeping the original extension."""
    return f"{uuid.uuid4()}{extension}"
