"""Pre-analysis image quality gate (single scout pass)."""

from __future__ import annotations

import logging
from typing import Sequence

from models.findings import QualityAssessment
from services.analysis.prompts import build_quality_prompt
from services.image_fetcher import ImageFetcher
from services.openai.response_parser import clean_json_response, parse_structured
from services.openai.vision_client import VisionModelClient
from utils.errors import ValidationError

LOGGER = logging.getLogger(__name__)


class QualityChecker:
    """Ask the scout model whether a set of photos is usable."""

    def __init__(self, vision: VisionModelClient, fetcher: ImageFetcher, *, model: str) -> None:
        self.vision = vision
        self.fetcher = fetcher
        self.model = model

    async def assess(self, image_urls: Sequence[str]) -> QualityAssessment:
        urls = [url.strip() for url in image_urls if url and url.strip()]
        if not urls:
            raise ValidationError("Missing required field: imageUrls")

        images = []
        for url in urls:
            image = await self.fetcher.fetch_as_inline_image(url)
            images.append(image)

        text = clean_json_response(await self.vision.generate(self.model, build_quality_prompt(), images))
        assessment = parse_structured(text, QualityAssessment, stage="quality")

        defaulted = [image.source_url for image in images if image.mime_defaulted]
        if defaulted:
            assessment.issues.append("Image type could not be determined; results may be less reliable.")
            LOGGER.info("Quality check flagged %d image(s) with unknown type", len(defaulted))
        return assessment
