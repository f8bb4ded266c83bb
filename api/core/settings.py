"""
Environment-driven settings shared by the app entrypoint and feature modules.

Values are read on each call so tests can override them with monkeypatch.setenv.
"""

from __future__ import annotations

import os

DEFAULT_PORT = 8000


def env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip() or default


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def cors_origins() -> list[str]:
    raw = env_str("CORS_ORIGIN", "*")
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or ["*"]


def port() -> int:
    return env_int("PORT", DEFAULT_PORT)


def log_level() -> str:
    return env_str("LOG_LEVEL", "INFO")


def public_dir() -> str:
    return env_str("PUBLIC_DIR", "public")


def uploads_dir() -> str:
    return env_str("UPLOADS_DIR", "uploads")
