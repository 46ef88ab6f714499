from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from controllers.upload_controller import create_upload_slot
from services.response_formatter import error_payload

router = APIRouter(prefix="/api", tags=["uploads"])


class UploadSlotPayload(BaseModel):
    fileName: Optional[str] = None
    contentType: Optional[str] = None


@router.post("/upload-slot")
async def upload_slot(request: Request, payload: UploadSlotPayload):
    """Return a signed URL the client can PUT the file to directly."""
    try:
        data = await create_upload_slot(request, payload.fileName or "", payload.contentType or "")
    except Exception as exc:  # pylint: disable=broad-exception-caught
        status_code, body = error_payload(exc)
        return JSONResponse(status_code=status_code, content=body)
    return {"success": True, "data": data}
