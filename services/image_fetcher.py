"""Download remote images into the inline form the inference API accepts."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from models.image_part import ImagePart
from utils.errors import FetchError, ValidationError

LOGGER = logging.getLogger(__name__)
DEFAULT_MIME_TYPE = "image/jpeg"


class ImageFetcher:
    """Fetch an image URL and wrap its bytes with the declared MIME type."""

    def __init__(self, http_client: httpx.AsyncClient, timeout: float = 15.0) -> None:
        """Initialize the fetcher with a shared async HTTP client.

        Args:
            http_client: Process-wide `httpx.AsyncClient`.
            timeout: Per-request timeout in seconds.
        """
        if http_client is None:
            raise ValueError("httpx.AsyncClient is required.")
        self.http_client = http_client
        self.timeout = timeout

    async def fetch_as_inline_image(self, url: str) -> ImagePart:
        """Return the image at `url` as an `ImagePart`.

        Raises:
            ValidationError: If `url` cannot be parsed as a URL.
            FetchError: On a non-2xx status, a timeout, or a transport failure.
        """
        try:
            response = await self.http_client.get(
                url, timeout=httpx.Timeout(self.timeout), follow_redirects=True
            )
        except httpx.InvalidURL as exc:
            raise ValidationError(f"Invalid image URL: {url}") from exc
        except httpx.TimeoutException as exc:
            raise FetchError(f"Timed out fetching image after {self.timeout:g}s") from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"Failed to fetch image: {exc.__class__.__name__}") from exc

        if not response.is_success:
            raise FetchError(
                f"Failed to fetch image: {response.reason_phrase or response.status_code}",
                status_code=response.status_code,
            )

        mime_type = _declared_mime_type(response.headers.get("content-type"))
        if mime_type is None:
            LOGGER.warning("No content type for %s; assuming %s", url, DEFAULT_MIME_TYPE)
            return ImagePart(
                data=response.content,
                mime_type=DEFAULT_MIME_TYPE,
                source_url=url,
                mime_defaulted=True,
            )
        return ImagePart(data=response.content, mime_type=mime_type, source_url=url)


def _declared_mime_type(header: Optional[str]) -> Optional[str]:
    if not header:
        return None
    mime_type = header.split(";", 1)[0].strip().lower()
    return mime_type or None
