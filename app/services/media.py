"""Hosted avatar storage: delete assets that belonged to removed accounts."""

import hashlib
import time
from typing import TYPE_CHECKING, Protocol

import httpx

if TYPE_CHECKING:
    from app.core.config import Settings

CLOUDINARY_API_BASE = "https://api.cloudinary.com/v1_1"


class MediaStoreError(Exception):
    """Raised when an asset could not be deleted."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class MediaStore(Protocol):
    def delete(self, asset_id: str) -> None: ...


def _sign(params: dict[str, str], api_secret: str) -> str:
    """Cloudinary request signature: sorted key=value pairs joined by '&', secret appended, SHA-1."""
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params))
    return hashlib.sha1((to_sign + api_secret).encode("utf-8")).hexdigest()


class CloudinaryMediaStore:
    """Deletes images through Cloudinary's signed destroy endpoint."""

    def __init__(self, settings: "Settings", client: httpx.Client | None = None) -> None:
        if not (
            settings.CLOUDINARY_CLOUD_NAME
            and settings.CLOUDINARY_API_KEY
            and settings.CLOUDINARY_API_SECRET
        ):
            raise ValueError("Cloudinary is not configured.")
        self._cloud_name = settings.CLOUDINARY_CLOUD_NAME
        self._api_key = settings.CLOUDINARY_API_KEY
        self._api_secret = settings.CLOUDINARY_API_SECRET.get_secret_value()
        self._timeout = settings.CLOUDINARY_REQUEST_TIMEOUT_SEC
        self._client = client or httpx.Client()

    def delete(self, asset_id: str) -> None:
        params = {"public_id": asset_id, "timestamp": str(int(time.time()))}
        data = {
            **params,
            "api_key": self._api_key,
            "signature": _sign(params, self._api_secret),
        }
        url = f"{CLOUDINARY_API_BASE}/{self._cloud_name}/image/destroy"
        try:
            resp = self._client.post(url, data=data, timeout=self._timeout)
        except httpx.HTTPError as e:
            raise MediaStoreError(f"Cloudinary unreachable: {e}") from e
        if resp.status_code >= 400:
            raise MediaStoreError(
                f"Cloudinary returned {resp.status_code}: {resp.text[:200]}",
                resp.status_code,
            )
        result = resp.json().get("result")
        if result not in ("ok", "not found"):
            raise MediaStoreError(f"Cloudinary destroy result: {result}")

    def close(self) -> None:
        self._client.close()


def build_media_store(settings: "Settings") -> MediaStore | None:
    if settings.CLOUDINARY_CLOUD_NAME and settings.CLOUDINARY_API_KEY and settings.CLOUDINARY_API_SECRET:
        return CloudinaryMediaStore(settings)
    return None
