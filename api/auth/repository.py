"""
Account persistence helpers.
"""

from __future__ import annotations

import asyncpg

from core import db
from core.errors import ConflictError


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


async def create_user(*, name: str, email: str, password_hash: str) -> dict:
    try:
        row = await db.fetch_one(
            """
            INSERT INTO users (name, email, password_hash)
            VALUES ($1, $2, $3)
            RETURNING id, name, email, created_at, updated_at
            """,
            name,
            normalize_email(email),
            password_hash,
        )
    except asyncpg.UniqueViolationError as exc:
        # Lost a race with a concurrent registration of the same email.
        raise ConflictError("User already exists") from exc
    if row is None:
        raise RuntimeError("Failed to create user.")
    return row


async def get_user_by_email(email: str) -> dict | None:
    return await db.fetch_one(
        """
        SELECT id, name, email, password_hash, created_at, updated_at
        FROM users
        WHERE email = $1
        """,
        normalize_email(email),
    )


async def get_user_by_id(user_id: int) -> dict | None:
    return await db.fetch_one(
        """
        SELECT id, name, email, password_hash, created_at, updated_at
        FROM users
        WHERE id = $1
        """,
        user_id,
    )
