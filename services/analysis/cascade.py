"""Confidence-gated two-tier analysis.

A cheap scout model screens every image. Only when the scout reports a
confidence at or below the threshold is the same request re-run on the more
expensive sniper model. Scout output that cannot be parsed fails the request;
sniper output that cannot be parsed falls back to the scout's finding.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from models.analysis_record import AnalysisOutcome, AnalysisRecord, ModelTier
from models.findings import FINDING_SCHEMAS, AnalysisVariant
from models.image_part import ImagePart
from services.analysis.prompts import build_prompt
from services.image_fetcher import ImageFetcher
from services.openai.response_parser import clean_json_response, parse_structured
from services.openai.vision_client import VisionModelClient
from services.result_persister import ResultPersister
from utils.config import DEFAULT_CONFIDENCE_THRESHOLD
from utils.errors import UpstreamFormatError, ValidationError

LOGGER = logging.getLogger(__name__)


class CascadingAnalyzer:
    """Run the scout pass, check its confidence, and escalate when needed."""

    def __init__(
        self,
        vision: VisionModelClient,
        fetcher: ImageFetcher,
        *,
        scout_model: str,
        sniper_model: str,
        confidence_threshold: int = DEFAULT_CONFIDENCE_THRESHOLD,
        persister: Optional[ResultPersister] = None,
    ) -> None:
        """Wire the analyzer to its collaborators.

        Args:
            vision: Client used for both inference passes.
            fetcher: Downloads the images to analyse.
            scout_model: Model id of the cheap screening pass.
            sniper_model: Model id of the escalation pass.
            confidence_threshold: Scout scores at or below this escalate.
            persister: Optional best-effort record writer.
        """
        self.vision = vision
        self.fetcher = fetcher
        self.scout_model = scout_model
        self.sniper_model = sniper_model
        self.confidence_threshold = confidence_threshold
        self.persister = persister

    def should_escalate(self, confidence_score: int) -> bool:
        """Scores equal to the threshold escalate too."""
        return confidence_score <= self.confidence_threshold

    async def analyze(
        self,
        image_url: str,
        *,
        variant: AnalysisVariant = AnalysisVariant.PART,
        prompt_context: Optional[str] = None,
        extra_image_urls: Sequence[str] = (),
        vehicle_details: Optional[str] = None,
    ) -> AnalysisOutcome:
        """Analyse one subject shown in one or more images.

        Raises:
            ValidationError: If `image_url` is empty.
            FetchError: If any image cannot be downloaded.
            InferenceError: If either inference call fails in transport.
            UpstreamFormatError: If the scout output cannot be parsed.
        """
        if not image_url or not image_url.strip():
            raise ValidationError("Missing required field: imageUrl")

        images = await self._fetch_all([image_url.strip(), *extra_image_urls])
        prompt = build_prompt(variant, prompt_context, vehicle_details)
        schema = FINDING_SCHEMAS[variant]

        scout_text = clean_json_response(await self.vision.generate(self.scout_model, prompt, images))
        scout_finding = parse_structured(scout_text, schema, stage="scout")
        scout_confidence = scout_finding.confidence_score

        outcome = AnalysisOutcome(
            finding=scout_finding.model_dump(mode="json"),
            tier=ModelTier.SCOUT,
            model_id=self.scout_model,
            scout_confidence=scout_confidence,
        )

        if self.should_escalate(scout_confidence):
            LOGGER.info(
                "Scout confidence_score %s <= %s; escalating to %s",
                scout_confidence,
                self.confidence_threshold,
                self.sniper_model,
            )
            sniper_text = clean_json_response(await self.vision.generate(self.sniper_model, prompt, images))
            try:
                sniper_finding = parse_structured(sniper_text, schema, stage="sniper")
            except UpstreamFormatError as exc:
                LOGGER.warning("Sniper output unusable, keeping scout result: %s", exc)
                outcome.refinement_failed = True
            else:
                outcome.finding = sniper_finding.model_dump(mode="json")
                outcome.tier = ModelTier.SNIPER
                outcome.model_id = self.sniper_model

        if self.persister is not None:
            outcome.record_id = await self.persister.persist(
                AnalysisRecord(
                    id=None,
                    image_url=image_url.strip(),
                    analysis_data=outcome.finding,
                    model_used=outcome.model_id,
                )
            )
        return outcome

    async def _fetch_all(self, urls: Sequence[str]) -> List[ImagePart]:
        # Fetched one at a time; a request never fans out.
        images: List[ImagePart] = []
        for url in urls:
            if url and url.strip():
                images.append(await self.fetcher.fetch_as_inline_image(url.strip()))
        return images
