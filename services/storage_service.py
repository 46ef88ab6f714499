"""Signed upload slots on the object store.

The client asks for a slot, then PUTs the file straight to the returned URL,
so storage credentials never leave the server. The store speaks the Supabase
Storage REST API.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from models.image_part import UploadSlot
from utils.errors import StorageError, ValidationError

LOGGER = logging.getLogger(__name__)


class StorageService:
    """Mint signed upload URLs for one bucket."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: Optional[str],
        service_key: Optional[str],
        bucket: str,
        timeout: float = 15.0,
    ) -> None:
        self.http_client = http_client
        self.base_url = (base_url or "").rstrip("/")
        self.service_key = service_key
        self.bucket = bucket
        self.timeout = timeout

    def _require_configured(self) -> None:
        if not self.base_url or not self.service_key:
            raise StorageError("Storage is not configured (STORAGE_URL / STORAGE_SERVICE_KEY).")

    async def request_upload_slot(self, file_name: str, content_type: str) -> UploadSlot:
        """Create a signed upload URL for `file_name`.

        The slot overwrites an existing object with the same name, so callers
        should namespace their file names.

        Args:
            file_name: Object path inside the bucket.
            content_type: MIME type the client will upload with.

        Returns:
            The signed URL plus the storage path the caller must keep.

        Raises:
            ValidationError: If either argument is empty.
            StorageError: If the store rejects the request or is unreachable.
        """
        file_name = (file_name or "").strip().lstrip("/")
        if not file_name:
            raise ValidationError("Missing required field: fileName")
        if not (content_type or "").strip():
            raise ValidationError("Missing required field: contentType")
        self._require_configured()

        endpoint = f"{self.base_url}/storage/v1/object/upload/sign/{self.bucket}/{quote(file_name)}"
        headers = {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
            "x-upsert": "true",
        }
        try:
            response = await self.http_client.post(
                endpoint, headers=headers, timeout=httpx.Timeout(self.timeout)
            )
        except httpx.HTTPError as exc:
            raise StorageError(f"Storage request failed: {exc.__class__.__name__}") from exc

        if not response.is_success:
            message = _provider_message(response)
            LOGGER.error("Signed upload URL rejected for %s: %s", file_name, message)
            raise StorageError(message, status_code=response.status_code)

        relative_url = response.json().get("url")
        if not relative_url:
            raise StorageError("Storage response did not include a signed URL.")

        signed_url = f"{self.base_url}/storage/v1{relative_url}"
        token = httpx.URL(signed_url).params.get("token", "")
        return UploadSlot(signed_url=signed_url, path=file_name, token=token)


def _provider_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        for key in ("message", "error_description", "error"):
            value = payload.get(key)
            if value:
                return str(value)
    text = (response.text or "").strip()
    return text[:200] if text else f"Storage returned HTTP {response.status_code}"
