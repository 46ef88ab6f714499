import asyncio
import json

import httpx
import openai
import pytest

from conftest import FakeOpenAI, image_handler, part_finding
from models.analysis_record import AnalysisRecord, ModelTier
from models.findings import AnalysisVariant
from services.analysis.cascade import CascadingAnalyzer
from services.image_fetcher import ImageFetcher
from services.openai.vision_client import VisionModelClient
from services.result_persister import ResultPersister
from utils.errors import FetchError, InferenceError, UpstreamFormatError, ValidationError

SCOUT = "scout-model-id"
SNIPER = "sniper-model-id"
IMAGE_URL = "https://cdn.example.com/bumper.jpg"


class RecordingDAL:
    def __init__(self, fail=False):
        self.fail = fail
        self.records = []

    async def create_record(self, record: AnalysisRecord) -> int:
        if self.fail:
            raise RuntimeError("database is locked")
        self.records.append(record)
        return len(self.records)


def _run(outputs, *, threshold=85, dal=None, variant=AnalysisVariant.PART, image_url=IMAGE_URL, **kwargs):
    openai_client = FakeOpenAI(outputs)

    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(image_handler)) as http_client:
            analyzer = CascadingAnalyzer(
                VisionModelClient(openai_client),
                ImageFetcher(http_client),
                scout_model=SCOUT,
                sniper_model=SNIPER,
                confidence_threshold=threshold,
                persister=ResultPersister(dal) if dal is not None else None,
            )
            return await analyzer.analyze(image_url, variant=variant, **kwargs)

    return openai_client, asyncio.run(go())


def test_high_confidence_scout_result_is_returned_without_escalation():
    client, outcome = _run({SCOUT: part_finding(score=95)})

    assert client.models_called == [SCOUT]
    assert outcome.tier is ModelTier.SCOUT
    assert outcome.model_id == SCOUT
    assert outcome.finding["confidence_score"] == 95


def test_score_equal_to_threshold_escalates():
    client, outcome = _run({SCOUT: part_finding(score=85), SNIPER: part_finding(score=97)})

    assert client.models_called == [SCOUT, SNIPER]
    assert outcome.tier is ModelTier.SNIPER


def test_score_just_above_threshold_does_not_escalate():
    client, outcome = _run({SCOUT: part_finding(score=86)})

    assert client.models_called == [SCOUT]
    assert outcome.tier is ModelTier.SCOUT


def test_low_confidence_bumper_is_refined_by_sniper():
    scout = part_finding(score=72, part_name="Bumper", manufacturer_guess="Unknown")
    sniper = part_finding(score=96, part_name="ARB Summit Bumper")
    dal = RecordingDAL()

    _, outcome = _run({SCOUT: scout, SNIPER: sniper}, dal=dal)

    assert outcome.model_id == SNIPER
    assert outcome.finding["part_name"] == "ARB Summit Bumper"
    assert outcome.scout_confidence == 72
    assert outcome.record_id == 1
    assert dal.records[0].model_used == SNIPER
    assert dal.records[0].image_url == IMAGE_URL


def test_unparseable_sniper_output_falls_back_to_scout():
    scout = part_finding(score=40, part_name="Bumper")

    client, outcome = _run({SCOUT: scout, SNIPER: "I think it is a bumper."})

    assert client.models_called == [SCOUT, SNIPER]
    assert outcome.tier is ModelTier.SCOUT
    assert outcome.finding["part_name"] == "Bumper"
    assert outcome.refinement_failed is True


def test_unparseable_scout_output_is_fatal_and_sniper_never_runs():
    client = FakeOpenAI({SCOUT: "not json at all", SNIPER: part_finding(score=99)})

    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(image_handler)) as http_client:
            analyzer = CascadingAnalyzer(
                VisionModelClient(client), ImageFetcher(http_client), scout_model=SCOUT, sniper_model=SNIPER
            )
            await analyzer.analyze(IMAGE_URL)

    with pytest.raises(UpstreamFormatError) as exc_info:
        asyncio.run(go())

    assert exc_info.value.stage == "scout"
    assert exc_info.value.raw == "not json at all"
    assert client.models_called == [SCOUT]


def test_fractional_confidence_score_is_rejected():
    raw = json.loads(part_finding())
    raw["confidence_score"] = 92.5

    with pytest.raises(UpstreamFormatError):
        _run({SCOUT: json.dumps(raw)})


def test_out_of_range_confidence_score_is_rejected():
    with pytest.raises(UpstreamFormatError):
        _run({SCOUT: part_finding(score=101)})


def test_markdown_fenced_output_is_accepted():
    fenced = "```json\n" + part_finding(score=90) + "\n```"

    _, outcome = _run({SCOUT: fenced})

    assert outcome.finding["part_name"] == "Summit Bumper"


def test_persistence_failure_does_not_change_the_result():
    _, outcome = _run({SCOUT: part_finding(score=93)}, dal=RecordingDAL(fail=True))

    assert outcome.tier is ModelTier.SCOUT
    assert outcome.record_id is None


def test_missing_image_url_is_a_validation_error():
    with pytest.raises(ValidationError, match="Missing required field: imageUrl"):
        _run({SCOUT: part_finding()}, image_url="  ")


def test_unreachable_image_stops_before_inference():
    client = FakeOpenAI({SCOUT: part_finding()})

    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(image_handler)) as http_client:
            analyzer = CascadingAnalyzer(
                VisionModelClient(client), ImageFetcher(http_client), scout_model=SCOUT, sniper_model=SNIPER
            )
            await analyzer.analyze("https://cdn.example.com/missing.jpg")

    with pytest.raises(FetchError) as exc_info:
        asyncio.run(go())

    assert exc_info.value.status_code == 404
    assert client.models_called == []


def test_extra_views_are_sent_in_a_single_request():
    client, _ = _run(
        {SCOUT: part_finding(score=99)},
        extra_image_urls=["https://cdn.example.com/side.jpg"],
    )

    content = client.responses.calls[0]["input"][0]["content"]
    assert [part["type"] for part in content] == ["input_text", "input_image", "input_image"]
    assert client.responses.calls[0]["tools"] == [{"type": "code_interpreter", "container": {"type": "auto"}}]


def test_vehicle_variant_uses_vehicle_schema():
    vehicle = {
        "primary": {
            "make": "Ford",
            "model": "F-150",
            "year": 2021,
            "trim": "Lariat",
            "vehicleType": "Truck",
            "color": "Blue",
            "condition": "Excellent",
            "confidence": 91,
        },
        "recommendedAccessories": ["Tonneau Cover (e.g. BAKFlip MX4, Retrax PRO)"],
        "confidence_score": 91,
        "seo_optimized_alt_text": "Blue 2021 Ford F-150 Lariat",
    }

    _, outcome = _run({SCOUT: json.dumps(vehicle)}, variant=AnalysisVariant.VEHICLE)

    assert outcome.finding["primary"]["year"] == "2021"
    assert outcome.finding["otherPossibilities"] == []


def _connection_error():
    return openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/responses"))


def test_scout_transport_failure_halts_before_sniper_and_persistence():
    dal = RecordingDAL()
    client = FakeOpenAI({SCOUT: _connection_error(), SNIPER: part_finding(score=99)})

    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(image_handler)) as http_client:
            analyzer = CascadingAnalyzer(
                VisionModelClient(client),
                ImageFetcher(http_client),
                scout_model=SCOUT,
                sniper_model=SNIPER,
                persister=ResultPersister(dal),
            )
            await analyzer.analyze(IMAGE_URL)

    with pytest.raises(InferenceError) as exc_info:
        asyncio.run(go())

    assert exc_info.value.timeout is False
    assert client.models_called == [SCOUT]
    assert dal.records == []


def test_sniper_transport_failure_halts_without_persisting():
    dal = RecordingDAL()

    with pytest.raises(InferenceError):
        _run({SCOUT: part_finding(score=10), SNIPER: _connection_error()}, dal=dal)

    assert dal.records == []


def test_sniper_timeout_is_flagged_as_timeout():
    timeout = openai.APITimeoutError(request=httpx.Request("POST", "https://api.openai.com/v1/responses"))

    with pytest.raises(InferenceError) as exc_info:
        _run({SCOUT: part_finding(score=50), SNIPER: timeout})

    assert exc_info.value.timeout is True
