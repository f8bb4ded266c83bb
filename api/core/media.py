"""
Cloudinary HTTP client helpers.

Used endpoints (relative to https://api.cloudinary.com/v1_1/<cloud_name>):
- POST /image/upload   -> {"secure_url": "...", "public_id": "..."}
- POST /image/destroy  -> {"result": "ok" | "not found"}

Requests are signed with the account's API secret; see `sign_params`.

Images are filed with `asset_folder`, which leaves the folder out of the public
id, so the id recovered from a delivery URL by `public_id_from_url` is the one
`destroy` needs.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx

from . import settings

DEFAULT_API_BASE_URL = "https://api.cloudinary.com/v1_1"
DEFAULT_FOLDER = "cars"
DEFAULT_ALLOWED_FORMATS = ("jpg", "jpeg", "png")
# Same as a {width: 1000, height: 1000, crop: "limit"} transformation.
DEFAULT_TRANSFORMATION = "c_limit,h_1000,w_1000"

# Never part of the string to sign.
_UNSIGNED_PARAMS = {"file", "api_key", "resource_type", "cloud_name", "signature"}

logger = logging.getLogger(__name__)


# Media host failures are explicit and separable from other runtime errors.
class MediaError(RuntimeError):
    pass


@dataclass(frozen=True)
class MediaConfig:
    cloud_name: str
    api_key: str
    api_secret: str
    folder: str = DEFAULT_FOLDER
    allowed_formats: tuple[str, ...] = DEFAULT_ALLOWED_FORMATS
    transformation: str = DEFAULT_TRANSFORMATION
    api_base_url: str = DEFAULT_API_BASE_URL

    @property
    def is_configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)


def media_config_from_env() -> MediaConfig:
    return MediaConfig(
        cloud_name=settings.env_str("CLOUDINARY_CLOUD_NAME"),
        api_key=settings.env_str("CLOUDINARY_API_KEY"),
        api_secret=settings.env_str("CLOUDINARY_API_SECRET"),
        folder=settings.env_str("CLOUDINARY_FOLDER", DEFAULT_FOLDER),
    )


def sign_params(params: dict[str, Any], api_secret: str) -> str:
    """
    SHA-1 over "k1=v1&k2=v2...<api_secret>" with keys sorted and empty values skipped.
    """
    pairs = [
        f"{key}={params[key]}"
        for key in sorted(params)
        if key not in _UNSIGNED_PARAMS and params[key] not in (None, "")
    ]
    to_sign = "&".join(pairs) + api_secret
    return hashlib.sha1(to_sign.encode("utf-8")).hexdigest()


def public_id_from_url(url: str) -> str:
    """
    Recover the delete identifier from a stored image URL.

    Last path segment with its extension stripped:
    ".../image/upload/v1712/abc123.jpg" -> "abc123"
    """
    return url.split("/")[-1].split(".")[0]


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text[:300]
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return resp.text[:300]


def _json_object(resp: httpx.Response, action: str) -> dict[str, Any]:
    try:
        data = resp.json()
    except ValueError as exc:
        raise MediaError(f"Cloudinary {action} returned a non-JSON body: {resp.text[:300]}") from exc
    if not isinstance(data, dict):
        raise MediaError(f"Cloudinary {action} returned an unexpected payload.")
    return data


class MediaClient:
    """
    Thin async wrapper over the Cloudinary upload API.

    One instance is built at startup and shared by all requests; it holds no
    per-request state.
    """

    def __init__(
        self,
        config: MediaConfig,
        *,
        timeout_s: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        base_url = f"{config.api_base_url.rstrip('/')}/{config.cloud_name}"
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout_s, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    def _signed(self, params: dict[str, Any]) -> dict[str, Any]:
        if not self.config.is_configured:
            raise MediaError("Cloudinary credentials are not configured.")
        params = {k: v for k, v in params.items() if v not in (None, "")}
        params["timestamp"] = str(int(time.time()))
        params["signature"] = sign_params(params, self.config.api_secret)
        params["api_key"] = self.config.api_key
        return params

    async def upload_image(self, data: bytes, *, filename: str, content_type: str | None = None) -> str:
        """
        Upload one image and return its `secure_url`.
        """
        fields = self._signed(
            {
                "asset_folder": self.config.folder,
                "allowed_formats": ",".join(self.config.allowed_formats),
                "transformation": self.config.transformation,
            }
        )
        files = {"file": (filename or "upload", data, content_type or "application/octet-stream")}

        try:
            resp = await self._client.post("/image/upload", data=fields, files=files)
        except httpx.HTTPError as exc:
            raise MediaError(f"Cloudinary upload request failed: {exc}") from exc

        if resp.status_code != 200:
            raise MediaError(f"Cloudinary upload failed: {resp.status_code} {_error_message(resp)}")

        payload = _json_object(resp, "upload")
        url = payload.get("secure_url") or payload.get("url")
        if not isinstance(url, str) or not url:
            raise MediaError("Cloudinary returned no image URL.")
        return url

    async def destroy(self, public_id: str) -> bool:
        """
        Delete an image by public id. Returns False when Cloudinary reports it missing.
        """
        public_id = (public_id or "").strip()
        if not public_id:
            raise MediaError("Public id is empty.")

        fields = self._signed({"public_id": public_id})
        try:
            resp = await self._client.post("/image/destroy", data=fields)
        except httpx.HTTPError as exc:
            raise MediaError(f"Cloudinary destroy request failed: {exc}") from exc

        if resp.status_code != 200:
            raise MediaError(f"Cloudinary destroy failed: {resp.status_code} {_error_message(resp)}")

        result = str(_json_object(resp, "destroy").get("result") or "")
        if result not in {"ok", "not found"}:
            raise MediaError(f"Cloudinary destroy returned unexpected result: {result!r}")
        return result == "ok"

    async def destroy_url(self, url: str) -> bool:
        return await self.destroy(public_id_from_url(url))
