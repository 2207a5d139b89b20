"""
Photo byte storage.

Profile photos are sniffed with Pillow and handed to a ``PhotoStore``:
the local filesystem in development and tests, Alibaba Cloud OSS in
production (``settings.photo_storage``).
"""
import asyncio
import io
import logging
import uuid
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

import oss2
from fastapi import HTTPException, status
from PIL import Image, UnidentifiedImageError

from app.config import settings
from app.core.errors import InvalidInput

logger = logging.getLogger(__name__)

# Pillow format name -> MIME type accepted for profile photos
ALLOWED_IMAGE_FORMATS = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
    "WEBP": "image/webp",
}

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


@dataclass
class ImageInfo:
    mime_type: str
    width: int
    height: int


def sniff_image(data: bytes) -> ImageInfo:
    """
    Identify an image from its bytes, ignoring any client-declared type.

    Args:
        data: Raw upload

    Returns:
        Detected MIME type and dimensions

    Raises:
        InvalidInput: If the payload is empty, not an image, or an
            unsupported format
    """
    if not data:
        raise InvalidInput("File is empty")

    try:
        with Image.open(io.BytesIO(data)) as image:
            image_format = image.format
            width, height = image.size
            image.verify()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError):
        raise InvalidInput("File is not a valid image")

    mime_type = ALLOWED_IMAGE_FORMATS.get(image_format or "")
    if mime_type is None:
        raise InvalidInput(
            f"Unsupported image format. Allowed types: {', '.join(ALLOWED_IMAGE_FORMATS.values())}"
        )
    return ImageInfo(mime_type=mime_type, width=width, height=height)


def _object_name(content_type: str) -> str:
    return f"{uuid.uuid4().hex}{_EXTENSIONS.get(content_type, '')}"


class PhotoStore:
    """Interface for photo byte stores."""

    async def put(self, data: bytes, content_type: str) -> str:
        """Store bytes and return the public URL."""
        raise NotImplementedError

    async def delete(self, url: str) -> None:
        """Remove a stored object by its public URL (best-effort)."""
        raise NotImplementedError


class LocalPhotoStore(PhotoStore):
    """Stores photos in a local directory served under ``base_url``."""

    def __init__(self, directory: str, base_url: str):
        self.directory = Path(directory)
        self.base_url = base_url.rstrip("/")

    async def put(self, data: bytes, content_type: str) -> str:
        name = _object_name(content_type)
        path = self.directory / name

        def _write():
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

        await asyncio.to_thread(_write)
        logger.info("Photo stored locally: %s (%d bytes)", path, len(data))
        return f"{self.base_url}/{name}"

    async def delete(self, url: str) -> None:
        name = url.rsplit("/", 1)[-1]
        path = self.directory / name
        await asyncio.to_thread(path.unlink, True)


class OSSPhotoStore(PhotoStore):
    """Stores photos in an Alibaba Cloud OSS bucket."""

    def __init__(self, folder: str = "photos"):
        """Initialize OSS bucket with credentials from settings."""
        if not settings.oss_access_key_id or not settings.oss_access_key_secret:
            logger.warning("OSS credentials not configured. Photo upload will fail.")

        self.folder = folder
        self.auth = oss2.Auth(
            settings.oss_access_key_id,
            settings.oss_access_key_secret
        )
        self.bucket = oss2.Bucket(
            self.auth,
            settings.oss_endpoint,
            settings.oss_bucket_name
        )
        # Public URLs use the public endpoint, not the internal one
        public_endpoint = settings.oss_endpoint.replace("-internal", "")
        self.public_prefix = f"https://{settings.oss_bucket_name}.{public_endpoint}"

    async def put(self, data: bytes, content_type: str) -> str:
        oss_key = f"{self.folder}/{_object_name(content_type)}"
        try:
            result = await asyncio.to_thread(
                self.bucket.put_object,
                oss_key,
                data,
                headers={
                    "Content-Type": content_type,
                    "Cache-Control": "public, max-age=31536000",
                },
            )
        except oss2.exceptions.OssError as e:
            logger.error("OSS upload failed: %s", e)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Photo storage temporarily unavailable"
            )

        if result.status != 200:
            logger.error("OSS upload returned HTTP %s for %s", result.status, oss_key)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Photo storage temporarily unavailable"
            )

        logger.info("Photo uploaded to OSS: %s (%d bytes)", oss_key, len(data))
        return f"{self.public_prefix}/{oss_key}"

    async def delete(self, url: str) -> None:
        if not url.startswith(self.public_prefix):
            return
        oss_key = url[len(self.public_prefix) + 1:]
        try:
            await asyncio.to_thread(self.bucket.delete_object, oss_key)
        except oss2.exceptions.OssError as e:
            logger.warning("OSS delete failed for %s: %s", oss_key, e)


@lru_cache
def get_photo_store() -> PhotoStore:
    """Photo store selected by ``settings.photo_storage``."""
    if settings.photo_storage == "oss":
        return OSSPhotoStore()
    return LocalPhotoStore(settings.photo_local_dir, settings.photo_base_url)
