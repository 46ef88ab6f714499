import pytest

from models.analysis_record import AnalysisOutcome, ModelTier
from models.findings import AnalysisVariant
from services.response_formatter import SCOUT_INVALID_JSON, error_payload, shopping_links, success_payload
from utils.affiliate import add_affiliate_tag, build_search_url
from utils.errors import FetchError, InferenceError, StorageError, UpstreamFormatError, ValidationError

TAG = "visualfitment-20"


def test_success_payload_shape():
    outcome = AnalysisOutcome(
        finding={"part_name": "ARB Summit Bumper", "manufacturer_guess": "ARB", "confidence_score": 96},
        tier=ModelTier.SNIPER,
        model_id="gpt-5",
        scout_confidence=72,
    )

    body = success_payload(outcome, AnalysisVariant.PART, TAG)

    assert body["success"] is True
    assert body["model_used"] == "gpt-5"
    assert body["model_tier"] == "sniper"
    assert body["data"]["part_name"] == "ARB Summit Bumper"
    assert body["shopping_links"][0]["url"].endswith("tag=visualfitment-20")


@pytest.mark.parametrize(
    "exc, status",
    [
        (ValidationError("Missing required field: imageUrl"), 400),
        (FetchError("Failed to fetch image: Not Found", status_code=404), 502),
        (InferenceError("boom"), 502),
        (InferenceError("slow", timeout=True), 504),
        (StorageError("denied"), 502),
        (RuntimeError("unexpected"), 500),
    ],
)
def test_error_status_mapping(exc, status):
    code, body = error_payload(exc)

    assert code == status
    assert body["success"] is False
    assert body["error"] == str(exc)


def test_scout_format_error_includes_raw_text():
    code, body = error_payload(UpstreamFormatError("bad", raw="nope", stage="scout"))

    assert code == 502
    assert body == {"success": False, "error": SCOUT_INVALID_JSON, "raw": "nope"}


def test_part_links_skip_unknown_manufacturer():
    links = shopping_links({"part_name": "Tow Hook", "manufacturer_guess": "Unknown"}, AnalysisVariant.PART, TAG)

    assert links == [{"label": "Tow Hook", "url": f"https://www.amazon.com/s?k=Tow+Hook&tag={TAG}"}]


def test_vehicle_links_include_vehicle_details():
    finding = {
        "primary": {
            "make": "Ford",
            "model": "F-150",
            "year": "2021",
            "trim": "XLT",
            "vehicleType": "Truck",
            "color": "Red",
            "condition": "Good",
            "confidence": 88,
        },
        "recommendedAccessories": ["Bed Liner"],
        "confidence_score": 88,
        "seo_optimized_alt_text": "Red Ford F-150",
    }

    links = shopping_links(finding, AnalysisVariant.VEHICLE, TAG)

    assert links[0]["label"] == "Bed Liner"
    assert links[0]["url"] == f"https://www.amazon.com/s?k=2021+Ford+F-150+XLT+Bed+Liner&tag={TAG}"


def test_product_links_use_brand_and_type():
    finding = {"products": [{"productType": "Tonneau Cover", "brandModel": "BAKFlip MX4", "confidence": 80}]}

    links = shopping_links(finding, AnalysisVariant.PRODUCTS, TAG)

    assert links[0]["url"] == f"https://www.amazon.com/s?k=BAKFlip+MX4+Tonneau+Cover&tag={TAG}"


def test_add_affiliate_tag_replaces_existing_tag():
    assert add_affiliate_tag("https://www.amazon.com/dp/B000?tag=other&th=1", TAG) == (
        f"https://www.amazon.com/dp/B000?th=1&tag={TAG}"
    )


def test_add_affiliate_tag_leaves_other_hosts_alone():
    url = "https://www.example.com/product?id=1"

    assert add_affiliate_tag(url, TAG) == url


def test_add_affiliate_tag_returns_unparseable_url_unchanged():
    url = "http://[::1"

    assert add_affiliate_tag(url, TAG) == url


def test_build_search_url_ignores_blank_terms():
    assert build_search_url("", "  ", "Lift Kit", tag=TAG) == f"https://www.amazon.com/s?k=Lift+Kit&tag={TAG}"
