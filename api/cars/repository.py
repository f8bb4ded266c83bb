"""
Car listing persistence.

Every statement filters on `user_id` so one account can never read or change
another account's listings.
"""

from __future__ import annotations

from typing import Any

from core import db

_CAR_COLUMNS = "id, user_id, title, description, tags, images, created_at, updated_at"


def _like_pattern(keyword: str) -> str:
    """
    Build an ILIKE substring pattern with LIKE wildcards escaped.
    """
    escaped = keyword.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


async def insert_car(
    *,
    user_id: int,
    title: str,
    description: str,
    tags: list[str],
    images: list[str],
) -> dict[str, Any]:
    row = await db.fetch_one(
        f"""
        INSERT INTO cars (user_id, title, description, tags, images)
        VALUES ($1, $2, $3, $4::text[], $5::text[])
        RETURNING {_CAR_COLUMNS}
        """,
        user_id,
        title,
        description,
        tags,
        images,
    )
    if row is None:
        raise RuntimeError("Failed to insert car.")
    return row


async def list_cars(*, user_id: int) -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        SELECT {_CAR_COLUMNS}
        FROM cars
        WHERE user_id = $1
        ORDER BY created_at DESC, id DESC
        """,
        user_id,
    )


async def search_cars(
    *,
    user_id: int,
    keyword: str,
    limit: int,
    offset: int,
) -> tuple[list[dict[str, Any]], int]:
    """
    Case-insensitive substring search over title, description and tags.

    Returns (page rows, total matches ignoring pagination).
    """
    pattern = _like_pattern(keyword)
    where = """
        WHERE user_id = $1
          AND (
            title ILIKE $2
            OR description ILIKE $2
            OR EXISTS (SELECT 1 FROM unnest(tags) AS tag WHERE tag ILIKE $2)
          )
    """
    rows = await db.fetch_all(
        f"""
        SELECT {_CAR_COLUMNS}
        FROM cars
        {where}
        ORDER BY created_at DESC, id DESC
        LIMIT $3
        OFFSET $4
        """,
        user_id,
        pattern,
        limit,
        offset,
    )
    total = await db.fetch_value(
        f"""
        SELECT count(*)
        FROM cars
        {where}
        """,
        user_id,
        pattern,
    )
    return rows, int(total or 0)


async def get_car(car_id: int, *, user_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {_CAR_COLUMNS}
        FROM cars
        WHERE id = $1
          AND user_id = $2
        """,
        car_id,
        user_id,
    )


async def update_car(
    car_id: int,
    *,
    user_id: int,
    title: str,
    description: str,
    tags: list[str],
    images: list[str],
) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        UPDATE cars
        SET title = $3,
            description = $4,
            tags = $5::text[],
            images = $6::text[],
            updated_at = now()
        WHERE id = $1
          AND user_id = $2
        RETURNING {_CAR_COLUMNS}
        """,
        car_id,
        user_id,
        title,
        description,
        tags,
        images,
    )


async def delete_car(car_id: int, *, user_id: int) -> bool:
    row = await db.fetch_one(
        """
        DELETE FROM cars
        WHERE id = $1
          AND user_id = $2
        RETURNING id
        """,
        car_id,
        user_id,
    )
    return row is not None
