"""
Car listing business logic.

Every operation takes the caller's account id explicitly, and operations that
touch images take the media client explicitly; nothing here reads a global
"current user" or a global Cloudinary configuration.

Deleting images at the media host is best-effort: a failed delete is logged
and the operation carries on.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from core.errors import NotFoundError, StorageError, UploadError, ValidationError
from core.media import MediaClient, MediaError

from . import repository, schemas
from .uploads import ImageUpload, validate_images

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

logger = logging.getLogger(__name__)


def parse_tags(raw: str | None) -> list[str]:
    """
    "a, b ,c" -> ["a", "b", "c"]. Empty pieces are dropped.
    """
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def _positive_int(raw: Any, default: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def _to_car(row: dict[str, Any]) -> schemas.Car:
    return schemas.Car(
        id=int(row["id"]),
        user_id=int(row["user_id"]),
        title=str(row["title"]),
        description=str(row["description"]),
        tags=list(row.get("tags") or []),
        images=list(row.get("images") or []),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _to_summary(row: dict[str, Any]) -> schemas.CarSummary:
    return schemas.CarSummary(
        id=int(row["id"]),
        title=str(row["title"]),
        description=str(row["description"]),
        images=list(row.get("images") or []),
        tags=list(row.get("tags") or []),
    )


async def _upload_all(images: list[ImageUpload], media: MediaClient) -> list[str]:
    """
    Upload a validated batch in order. On failure, undo what already went up.
    """
    urls: list[str] = []
    for image in images:
        try:
            url = await media.upload_image(image.data, filename=image.filename, content_type=image.content_type)
        except MediaError as exc:
            logger.warning("image_upload_failed filename=%s error=%s", image.filename, exc)
            await _destroy_all(urls, media)
            raise UploadError("File upload error", detail=str(exc)) from exc
        urls.append(url)
    return urls


async def _destroy_all(urls: list[str], media: MediaClient) -> None:
    for url in urls:
        try:
            deleted = await media.destroy_url(url)
        except MediaError as exc:
            logger.warning("image_delete_failed url=%s error=%s", url, exc)
            continue
        if not deleted:
            logger.warning("image_delete_missing url=%s", url)


async def _get_owned_row(car_id: int, owner_id: int) -> dict[str, Any]:
    row = await repository.get_car(car_id, user_id=owner_id)
    if row is None:
        raise NotFoundError("Car not found")
    return row


async def add_car(
    *,
    owner_id: int,
    title: str | None,
    description: str | None,
    tags: str | None,
    images: list[ImageUpload],
    media: MediaClient,
) -> schemas.CarSummary:
    title = (title or "").strip()
    description = (description or "").strip()
    if not title or not description:
        raise ValidationError("Title and description are required")
    if not images:
        raise ValidationError("No images uploaded")

    validate_images(images)
    image_urls = await _upload_all(images, media)

    try:
        row = await repository.insert_car(
            user_id=owner_id,
            title=title,
            description=description,
            tags=parse_tags(tags),
            images=image_urls,
        )
    except Exception as exc:
        logger.exception("car_insert_failed user_id=%s", owner_id)
        await _destroy_all(image_urls, media)
        raise StorageError("Error saving car", detail=str(exc)) from exc

    logger.info("car_created car_id=%s user_id=%s images=%s", row["id"], owner_id, len(image_urls))
    return _to_summary(row)


async def get_user_cars(*, owner_id: int) -> list[schemas.Car]:
    rows = await repository.list_cars(user_id=owner_id)
    return [_to_car(row) for row in rows]


async def search_cars(
    *,
    owner_id: int,
    keyword: str | None = None,
    page: Any = None,
    limit: Any = None,
) -> schemas.SearchPage:
    page = _positive_int(page, DEFAULT_PAGE)
    limit = min(_positive_int(limit, DEFAULT_LIMIT), MAX_LIMIT)

    rows, total = await repository.search_cars(
        user_id=owner_id,
        keyword=keyword or "",
        limit=limit,
        offset=(page - 1) * limit,
    )
    return schemas.SearchPage(
        cars=[_to_car(row) for row in rows],
        total=total,
        total_pages=math.ceil(total / limit),
        current_page=page,
        limit=limit,
    )


async def get_car_details(car_id: int, *, owner_id: int) -> schemas.Car:
    return _to_car(await _get_owned_row(car_id, owner_id))


async def update_car(
    car_id: int,
    *,
    owner_id: int,
    title: str | None = None,
    description: str | None = None,
    tags: str | None = None,
    images: list[ImageUpload] | None = None,
    media: MediaClient,
) -> schemas.Car:
    """
    Partial update: only fields present (and non-blank) in the request change.

    New images replace the old list wholesale; the old ones are removed from
    the media host once the new ones are safely uploaded.
    """
    row = await _get_owned_row(car_id, owner_id)

    new_images: list[str] = list(row.get("images") or [])
    if images:
        validate_images(images)
        uploaded = await _upload_all(images, media)
        await _destroy_all(new_images, media)
        new_images = uploaded

    title = (title or "").strip() or str(row["title"])
    description = (description or "").strip() or str(row["description"])
    new_tags = parse_tags(tags) if tags and tags.strip() else list(row.get("tags") or [])

    updated = await repository.update_car(
        car_id,
        user_id=owner_id,
        title=title,
        description=description,
        tags=new_tags,
        images=new_images,
    )
    if updated is None:
        # Deleted between the read and the write.
        raise NotFoundError("Car not found")

    logger.info("car_updated car_id=%s user_id=%s images_replaced=%s", car_id, owner_id, bool(images))
    return _to_car(updated)


async def delete_car(car_id: int, *, owner_id: int, media: MediaClient) -> None:
    row = await _get_owned_row(car_id, owner_id)
    await _destroy_all(list(row.get("images") or []), media)

    if not await repository.delete_car(car_id, user_id=owner_id):
        raise NotFoundError("Car not found")
    logger.info("car_deleted car_id=%s user_id=%s", car_id, owner_id)
