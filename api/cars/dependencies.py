"""
Car route dependencies.
"""

from __future__ import annotations

from fastapi import Request

from core.media import MediaClient


def get_media_client(request: Request) -> MediaClient:
    """
    The media client built once in the app lifespan.
    """
    media = getattr(request.app.state, "media", None)
    if media is None:
        raise RuntimeError("Media client is not initialized. It is created on startup.")
    return media
