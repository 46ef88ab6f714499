from __future__ import annotations

import base64
from dataclasses import dataclass


@dataclass(frozen=True)
class ImagePart:
    """Downloaded image bytes plus the MIME type declared by the origin.

    Attributes:
        data: Raw image bytes.
        mime_type: MIME type used when handing the image to the model.
        source_url: URL the bytes were fetched from.
        mime_defaulted: True when the origin sent no content type and
            `mime_type` is a guess.
    """

    data: bytes
    mime_type: str
    source_url: str = ""
    mime_defaulted: bool = False

    def to_data_url(self) -> str:
        """Encode the image as a base64 data URL for vision input."""
        encoded = base64.b64encode(self.data).decode("utf-8")
        return f"data:{self.mime_type};base64,{encoded}"


@dataclass(frozen=True)
class UploadSlot:
    """A signed, time-bounded credential for writing one storage object."""

    signed_url: str
    path: str
    token: str = ""
