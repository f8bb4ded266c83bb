"""
Image upload validation.

This file contains logic that is independent of FastAPI's routing layer:
- Validate image count, MIME type and size
- Read file bytes with a size limit
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import UploadFile

from core import settings
from core.errors import UploadError

MAX_IMAGES = 10
DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024  # 5 MiB


@dataclass(frozen=True)
class ImageUpload:
    filename: str
    content_type: str
    data: bytes

    @property
    def size_bytes(self) -> int:
        return len(self.data)


def max_image_bytes() -> int:
    value = settings.env_int("MAX_IMAGE_BYTES", DEFAULT_MAX_IMAGE_BYTES)
    return value if value > 0 else DEFAULT_MAX_IMAGE_BYTES


def validate_image(image: ImageUpload, *, max_bytes: int) -> None:
    if not image.content_type.lower().startswith("image/"):
        raise UploadError("File upload error", detail="Only image files are allowed!")
    if image.size_bytes > max_bytes:
        raise UploadError("File upload error", detail=f"File too large. Max is {max_bytes} bytes.")


def validate_images(images: list[ImageUpload]) -> None:
    """
    Check the whole batch before anything is sent to the media host.
    """
    if len(images) > MAX_IMAGES:
        raise UploadError("File upload error", detail=f"Too many files. Max is {MAX_IMAGES}.")
    max_bytes = max_image_bytes()
    for image in images:
        validate_image(image, max_bytes=max_bytes)


async def read_upload_bytes(file: UploadFile, max_bytes: int) -> bytes:
    """
    Read the upload into memory, enforcing a maximum size.
    """
    chunk_size = 1024 * 1024  # 1 MiB
    buf = bytearray()

    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise UploadError("File upload error", detail=f"File too large. Max is {max_bytes} bytes.")

    return bytes(buf)


async def read_images(files: list[UploadFile] | None) -> list[ImageUpload]:
    """
    Read multipart `images` parts into memory. MIME and size checks happen in
    `validate_images`; reading stops early once a part exceeds the size limit.

    Browsers send an empty part when no file was picked; those are skipped.
    """
    files = [f for f in (files or []) if f.filename]
    if len(files) > MAX_IMAGES:
        raise UploadError("File upload error", detail=f"Too many files. Max is {MAX_IMAGES}.")

    max_bytes = max_image_bytes()
    images: list[ImageUpload] = []
    for file in files:
        data = await read_upload_bytes(file, max_bytes=max_bytes)
        images.append(
            ImageUpload(filename=file.filename or "", content_type=file.content_type or "", data=data)
        )
    return images
