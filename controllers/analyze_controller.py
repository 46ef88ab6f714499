from typing import Optional, Sequence

from fastapi import Request

from dal.analysis_dal import AnalysisDAL
from models.analysis_record import AnalysisOutcome
from models.findings import AnalysisVariant, QualityAssessment
from services.analysis.cascade import CascadingAnalyzer
from services.analysis.quality import QualityChecker
from services.image_fetcher import ImageFetcher
from services.openai.vision_client import VisionModelClient
from services.result_persister import ResultPersister
from utils.config import Settings
from utils.errors import ValidationError


def resolve_variant(raw: Optional[str]) -> AnalysisVariant:
    """Map the request's `variant` string to an AnalysisVariant (default: part)."""
    if raw is None or not raw.strip():
        return AnalysisVariant.PART
    try:
        return AnalysisVariant(raw.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(v.value for v in AnalysisVariant)
        raise ValidationError(f"Unsupported variant '{raw}'. Supported: {allowed}") from exc


def _vision_and_fetcher(request: Request) -> tuple:
    settings: Settings = request.app.state.settings
    vision = VisionModelClient(
        request.app.state.openai_client,
        timeout=settings.inference_timeout,
        enable_code_execution=settings.enable_code_execution,
    )
    fetcher = ImageFetcher(request.app.state.http_client, timeout=settings.fetch_timeout)
    return vision, fetcher


async def run_analysis(
    request: Request,
    image_url: Optional[str],
    *,
    variant: AnalysisVariant,
    prompt_context: Optional[str] = None,
    extra_image_urls: Sequence[str] = (),
    vehicle_details: Optional[str] = None,
) -> AnalysisOutcome:
    """Run the cascading analysis for one subject using the app's shared clients.

    Args:
        request: FastAPI Request (used to access app.state for shared clients).
        image_url: Public URL of the primary image.
        variant: Which finding schema and prompt to use.
        prompt_context: Optional category focus, e.g. "truck bed covers".
        extra_image_urls: Additional views of the same subject.
        vehicle_details: Optional "year make model trim" from a prior fitment pass.

    Returns:
        The accepted finding with the tier that produced it.
    """
    settings: Settings = request.app.state.settings
    vision, fetcher = _vision_and_fetcher(request)
    persister = ResultPersister(AnalysisDAL(request.app.state.db_initializer))

    analyzer = CascadingAnalyzer(
        vision,
        fetcher,
        scout_model=settings.scout_model,
        sniper_model=settings.sniper_model,
        confidence_threshold=settings.confidence_threshold,
        persister=persister,
    )
    return await analyzer.analyze(
        image_url or "",
        variant=variant,
        prompt_context=prompt_context,
        extra_image_urls=extra_image_urls,
        vehicle_details=vehicle_details,
    )


async def run_quality_check(request: Request, image_urls: Sequence[str]) -> QualityAssessment:
    """Run the single-pass quality gate over every image of one subject."""
    settings: Settings = request.app.state.settings
    vision, fetcher = _vision_and_fetcher(request)
    return await QualityChecker(vision, fetcher, model=settings.scout_model).assess(image_urls)
