"""HTTP client the batch orchestrator uses to talk to the service."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence
from urllib.parse import quote

import httpx

from models.findings import QualityAssessment
from utils.config import DEFAULT_BUCKET
from utils.errors import ApiRequestError

LOGGER = logging.getLogger(__name__)


class ApiClient:
    """Upload images and request analyses over HTTP.

    Args:
        base_url: Root URL of the running service, e.g. "http://localhost:8000".
        storage_url: Root URL of the object store, used to build public URLs.
        http_client: Shared async client. The caller owns its lifetime.
        bucket: Bucket the upload slots point into.
        timeout: Per-request timeout in seconds. Analyses can take a while.
    """

    def __init__(
        self,
        base_url: str,
        storage_url: str,
        http_client: httpx.AsyncClient,
        *,
        bucket: str = DEFAULT_BUCKET,
        timeout: float = 120.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.storage_url = storage_url.rstrip("/")
        self.http_client = http_client
        self.bucket = bucket
        self.timeout = timeout

    def public_url(self, path: str) -> str:
        return f"{self.storage_url}/storage/v1/object/public/{self.bucket}/{quote(path.lstrip('/'))}"

    async def _post(self, route: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{route}"
        try:
            response = await self.http_client.post(url, json=payload, timeout=self.timeout)
        except httpx.HTTPError as exc:
            raise ApiRequestError(f"Request to {route} failed: {exc.__class__.__name__}") from exc

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        if not response.is_success or not body.get("success"):
            message = body.get("error")
            raise ApiRequestError(
                message or f"{route} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return body

    async def request_upload_slot(self, file_name: str, content_type: str) -> Dict[str, Any]:
        body = await self._post("/api/upload-slot", {"fileName": file_name, "contentType": content_type})
        return body["data"]

    async def upload(self, file_name: str, content_type: str, data: bytes) -> str:
        """Upload bytes through a signed slot and return the object's public URL."""
        slot = await self.request_upload_slot(file_name, content_type)
        try:
            response = await self.http_client.put(
                slot["signedUrl"],
                content=data,
                headers={"Content-Type": content_type},
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            raise ApiRequestError(f"Upload of {file_name} failed: {exc.__class__.__name__}") from exc
        if not response.is_success:
            raise ApiRequestError(
                f"Upload of {file_name} failed with HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return self.public_url(slot["path"])

    async def check_quality(self, image_urls: Sequence[str]) -> QualityAssessment:
        body = await self._post("/api/quality-check", {"imageUrls": list(image_urls)})
        return QualityAssessment.model_validate(body["data"])

    async def analyze(
        self,
        image_urls: Sequence[str],
        *,
        variant: str = "part",
        prompt_context: Optional[str] = None,
        vehicle_details: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Run one analysis; the first URL is primary, the rest are extra views.

        Returns:
            The full success envelope (`data`, `model_used`, `model_tier`, `shopping_links`).
        """
        if not image_urls:
            raise ApiRequestError("No uploaded images to analyse")
        payload: Dict[str, Any] = {
            "imageUrl": image_urls[0],
            "additionalImageUrls": list(image_urls[1:]),
            "variant": variant,
        }
        if prompt_context:
            payload["promptContext"] = prompt_context
        if vehicle_details:
            payload["vehicleDetails"] = vehicle_details
        LOGGER.debug("Requesting %s analysis for %d image(s)", variant, len(image_urls))
        return await self._post("/api/analyze", payload)
