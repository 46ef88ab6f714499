from typing import Any, Dict

from fastapi import Request

from services.storage_service import StorageService
from utils.config import Settings


async def create_upload_slot(request: Request, file_name: str, content_type: str) -> Dict[str, Any]:
    """Issue a signed upload URL for one file.

    Args:
        request: FastAPI Request (to access the shared HTTP client and settings).
        file_name: Storage path the client wants to write.
        content_type: MIME type the client will send with the PUT.

    Returns:
        A dict with `signedUrl`, `path` and `token`.
    """
    settings: Settings = request.app.state.settings
    storage = StorageService(
        request.app.state.http_client,
        settings.storage_url,
        settings.storage_service_key,
        settings.storage_bucket,
        timeout=settings.fetch_timeout,
    )
    slot = await storage.request_upload_slot(file_name, content_type)
    return {"signedUrl": slot.signed_url, "path": slot.path, "token": slot.token}
