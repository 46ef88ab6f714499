"""Shape pipeline outcomes and errors into the HTTP envelope."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

from models.analysis_record import AnalysisOutcome
from models.findings import AnalysisVariant, VehicleFinding
from utils.affiliate import build_search_url
from utils.errors import (
    FetchError,
    InferenceError,
    StorageError,
    UpstreamFormatError,
    ValidationError,
)

LOGGER = logging.getLogger(__name__)

SCOUT_INVALID_JSON = "Scout model returned invalid JSON"


def success_payload(
    outcome: AnalysisOutcome, variant: AnalysisVariant, affiliate_tag: str
) -> Dict[str, Any]:
    """Return the 200 body for a completed analysis."""
    return {
        "success": True,
        "model_used": outcome.model_id,
        "model_tier": outcome.tier.value,
        "data": outcome.finding,
        "shopping_links": shopping_links(outcome.finding, variant, affiliate_tag),
    }


def error_payload(exc: Exception) -> Tuple[int, Dict[str, Any]]:
    """Map an exception to `(status_code, body)`."""
    if isinstance(exc, ValidationError):
        return 400, {"success": False, "error": str(exc)}
    if isinstance(exc, UpstreamFormatError):
        message = SCOUT_INVALID_JSON if exc.stage == "scout" else str(exc)
        return 502, {"success": False, "error": message, "raw": exc.raw}
    if isinstance(exc, InferenceError):
        return (504 if exc.timeout else 502), {"success": False, "error": str(exc)}
    if isinstance(exc, (FetchError, StorageError)):
        return 502, {"success": False, "error": str(exc)}

    LOGGER.exception("Unhandled error while serving request")
    return 500, {"success": False, "error": str(exc) or exc.__class__.__name__}


def shopping_links(finding: Dict[str, Any], variant: AnalysisVariant, tag: str) -> List[Dict[str, str]]:
    """Build tagged search links for whatever the finding identified."""
    if variant is AnalysisVariant.PART:
        name = finding.get("part_name", "")
        manufacturer = finding.get("manufacturer_guess", "")
        if manufacturer.lower() == "unknown":
            manufacturer = ""
        return [{"label": name, "url": build_search_url(manufacturer, name, tag=tag)}]

    if variant is AnalysisVariant.VEHICLE:
        vehicle = VehicleFinding.model_validate(finding).vehicle_details()
        return [
            {"label": accessory, "url": build_search_url(vehicle, accessory, tag=tag)}
            for accessory in finding.get("recommendedAccessories", [])
        ]

    links = []
    for product in finding.get("products", []):
        brand_model = product.get("brandModel", "")
        if brand_model.lower() == "unknown":
            brand_model = ""
        links.append(
            {
                "label": product["productType"],
                "url": build_search_url(brand_model, product["productType"], tag=tag),
            }
        )
    return links
