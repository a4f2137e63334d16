import base64
import binascii
import io
import logging
import os
import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from storeback.core.config import settings
from storeback.core.exceptions import StorageError, ValidationFailed

PRODUCT_IMAGES = "images"
PROFILE_PICTURES = "profile_pictures"

# Pillow format name -> file extension
FORMAT_EXTENSIONS = {
    "JPEG": ".jpg",
    "PNG": ".png",
    "GIF": ".gif",
    "WEBP": ".webp",
    "BMP": ".bmp",
    "TIFF": ".tiff",
}

# Other spellings a client filename may use for the same format
EXTENSION_ALIASES = {
    ".jpg": {".jpg", ".jpeg", ".jpe"},
    ".tiff": {".tiff", ".tif"},
}


@dataclass
class ImagePayload:
    """An image as received from a client: raw upload bytes or a base64 string"""
    content: Optional[bytes] = None
    filename: Optional[str] = None
    base64_data: Optional[str] = None


async def read_image_payload(
    upload: Optional[UploadFile],
    base64_data: Optional[str] = None
) -> Optional[ImagePayload]:
    """Build a payload from a multipart file and/or base64 form field; None when neither was sent"""
    if upload is not None and upload.filename:
        content = await upload.read()
        if content:
            return ImagePayload(content=content, filename=upload.filename)
    if base64_data and base64_data.strip():
        return ImagePayload(base64_data=base64_data.strip())
    return None


class StorageService:
    """Stores uploaded images on local disk under a single root directory.

    Callers only ever see paths relative to the root (e.g. "images/<uuid>.png");
    those are what gets recorded in the database and served under /uploads.
    """

    def __init__(self, root: str):
        if not root:
            raise ValueError("Upload directory is not configured")
        self.root = os.path.abspath(root)

    def _detect_extension(self, content: bytes) -> str:
        """Check that content is an image and return the extension for its format"""
        try:
            with Image.open(io.BytesIO(content)) as image:
                image.verify()
                image_format = image.format
        except Image.DecompressionBombError as e:
            raise ValidationFailed("Image dimensions are too large", details=str(e))
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise ValidationFailed("Uploaded file is not a valid image", details=str(e))
        except Exception as e:
            # Pillow's format plugins raise assorted parser errors on malformed input
            raise ValidationFailed("Uploaded file is not a valid image", details=str(e))
        return FORMAT_EXTENSIONS.get(image_format, f".{image_format.lower()}")

    def _generate_filename(self, extension: str, folder: str) -> str:
        """Generate unique filename"""
        return f"{folder}/{uuid.uuid4().hex}{extension}"

    def _absolute_path(self, relative_path: str) -> str:
        path = os.path.abspath(os.path.join(self.root, relative_path))
        if os.path.commonpath([self.root, path]) != self.root:
            raise ValueError(f"Path escapes upload directory: {relative_path}")
        return path

    def save(self, content: bytes, extension_hint: Optional[str], folder: str) -> str:
        """
        Save image bytes and return the path relative to the upload root

        Args:
            content: Raw file content
            extension_hint: Original filename or extension, may be empty. Only
                kept when it names the format Pillow detects in the content.
            folder: Sub-directory (images, profile_pictures)
        """
        if not content:
            raise ValidationFailed("Uploaded file is empty")

        detected = self._detect_extension(content)
        hint = os.path.splitext(extension_hint or "")[1].lower()
        if not hint and extension_hint and extension_hint.startswith("."):
            hint = extension_hint.lower()
        extension = hint if hint in EXTENSION_ALIASES.get(detected, {detected}) else detected

        relative_path = self._generate_filename(extension, folder)
        absolute_path = self._absolute_path(relative_path)
        try:
            # Directories are created on first write
            os.makedirs(os.path.dirname(absolute_path), exist_ok=True)
            with open(absolute_path, "wb") as buffer:
                buffer.write(content)
        except OSError as e:
            logging.error(f"Failed to write {relative_path}: {str(e)}")
            raise StorageError(f"Failed to store file: {str(e)}")

        logging.info(f"Stored {len(content)} bytes at {relative_path}")
        return relative_path

    def save_base64(self, base64_data: str, folder: str) -> str:
        """Decode a base64 image (with or without data URI prefix) and save it"""
        # Remove data URI prefix if present (e.g., "data:image/jpeg;base64,")
        if base64_data.startswith("data:") and "," in base64_data:
            base64_data = base64_data.split(",", 1)[1]

        try:
            image_bytes = base64.b64decode(base64_data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationFailed("Image is not valid base64 data", details=str(e))

        logging.info(f"Decoded image size: {len(image_bytes)} bytes")
        return self.save(image_bytes, None, folder)

    def save_payload(self, payload: ImagePayload, folder: str) -> str:
        if payload.content is not None:
            return self.save(payload.content, payload.filename, folder)
        if payload.base64_data:
            return self.save_base64(payload.base64_data, folder)
        raise ValidationFailed("Image is required")

    def delete(self, relative_path: Optional[str]) -> None:
        """Delete a stored file; missing files are ignored"""
        if not relative_path:
            return
        absolute_path = self._absolute_path(relative_path)
        try:
            os.remove(absolute_path)
            logging.info(f"Deleted {relative_path}")
        except FileNotFoundError:
            logging.info(f"{relative_path} already absent, nothing to delete")

    def exists(self, relative_path: str) -> bool:
        return os.path.isfile(self._absolute_path(relative_path))


storage_service = StorageService(settings.upload_dir)


def get_storage_service() -> StorageService:
    return storage_service
