"""
Account business logic: registration, login, and resolving a bearer token
back to an account.
"""

from __future__ import annotations

import logging

from core.errors import AuthError, ConflictError, NotFoundError, ValidationError

from . import repository, schemas, security

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


def _to_public_user(user_row: dict) -> schemas.PublicUser:
    return schemas.PublicUser(
        id=int(user_row["id"]),
        name=str(user_row["name"]),
        email=str(user_row["email"]),
    )


def _clean(value: str | None) -> str:
    return (value or "").strip()


async def register(name: str | None, email: str | None, password: str | None) -> schemas.RegisterResponse:
    name, email = _clean(name), _clean(email)
    if not name or not email or not password:
        raise ValidationError("Missing required fields")
    if len(password.encode("utf-8")) > security.MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {security.MAX_PASSWORD_BYTES} bytes")

    existing = await repository.get_user_by_email(email)
    if existing is not None:
        raise ConflictError("User already exists")

    password_hash = security.hash_password(password)
    user_row = await repository.create_user(name=name, email=email, password_hash=password_hash)
    logger.info("user_registered user_id=%s", user_row["id"])

    token = security.build_access_token(user_id=int(user_row["id"]))
    return schemas.RegisterResponse(token=token)


async def login(email: str | None, password: str | None) -> schemas.LoginResponse:
    # Unknown email and wrong password share one message on purpose.
    email = _clean(email)
    if not email or not password:
        raise AuthError(INVALID_CREDENTIALS, status_code=400)

    user_row = await repository.get_user_by_email(email)
    if user_row is None:
        logger.info("login_failed reason=unknown_email")
        raise AuthError(INVALID_CREDENTIALS, status_code=400)

    if not security.verify_password(password, str(user_row.get("password_hash") or "")):
        logger.info("login_failed reason=bad_password user_id=%s", user_row["id"])
        raise AuthError(INVALID_CREDENTIALS, status_code=400)

    token = security.build_access_token(user_id=int(user_row["id"]))
    return schemas.LoginResponse(token=token, user=_to_public_user(user_row))


async def get_user_from_access_token(access_token: str) -> dict:
    try:
        payload = security.decode_access_token(access_token)
        user_id = security.user_id_from_payload(payload)
    except security.AuthSecurityError as exc:
        raise AuthError("Token is not valid", detail=str(exc)) from exc

    user_row = await repository.get_user_by_id(user_id)
    if user_row is None:
        raise NotFoundError("User not found")
    return user_row
