"""FastAPI routes for image analysis and the quality gate."""

from typing import List, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from controllers.analyze_controller import resolve_variant, run_analysis, run_quality_check
from services.response_formatter import error_payload, success_payload

router = APIRouter(prefix="/api", tags=["analysis"])


class AnalyzePayload(BaseModel):
    imageUrl: Optional[str] = None
    additionalImageUrls: List[str] = []
    variant: Optional[str] = None
    promptContext: Optional[str] = None
    vehicleDetails: Optional[str] = None


class QualityCheckPayload(BaseModel):
    imageUrls: List[str] = []


def _error_response(exc: Exception) -> JSONResponse:
    status_code, body = error_payload(exc)
    return JSONResponse(status_code=status_code, content=body)


@router.post("/analyze")
async def analyze_image(request: Request, payload: AnalyzePayload):
    """Identify the subject of the image(s), escalating to the sniper model on low confidence."""
    try:
        variant = resolve_variant(payload.variant)
        outcome = await run_analysis(
            request,
            payload.imageUrl,
            variant=variant,
            prompt_context=payload.promptContext,
            extra_image_urls=payload.additionalImageUrls,
            vehicle_details=payload.vehicleDetails,
        )
    except Exception as exc:  # pylint: disable=broad-exception-caught
        return _error_response(exc)
    return success_payload(outcome, variant, request.app.state.settings.affiliate_tag)


@router.post("/quality-check")
async def quality_check(request: Request, payload: QualityCheckPayload):
    """Report whether the photos are good enough to analyse."""
    try:
        assessment = await run_quality_check(request, payload.imageUrls)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        return _error_response(exc)
    return {"success": True, "data": assessment.model_dump()}
