"""Sequential driver for a batch of client-side items.

Items are processed one at a time by a single worker so the inference API
never sees more than one analysis from this client at once.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Deque, Dict, Iterable, List, Optional

from models.batch_item import BatchImage, BatchItem, BatchStatus, Selection
from services.api_client import ApiClient

LOGGER = logging.getLogger(__name__)

UPLOAD_START = 5
UPLOAD_DONE = 25
QUALITY_CHECK = 30
ANALYZING = 40
FITMENT_DONE = 60
PRODUCTS_DONE = 95
COMPLETE = 100


def _vehicle_details(finding: Dict[str, Any]) -> str:
    primary = finding.get("primary") or {}
    parts = [primary.get(key) for key in ("year", "make", "model", "trim")]
    return " ".join(str(part) for part in parts if part)


def _result_of(envelope: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in envelope.items() if key != "success"}


class BatchOrchestrator:
    """Own an ordered list of BatchItems and drive them through the pipeline."""

    def __init__(self, api: ApiClient, *, prompt_context: Optional[str] = None) -> None:
        self.api = api
        self.prompt_context = prompt_context
        self.items: List[BatchItem] = []

    # -- item editing -------------------------------------------------------

    def get(self, item_id: str) -> BatchItem:
        for item in self.items:
            if item.id == item_id:
                return item
        raise KeyError(item_id)

    def add_item(self, images: Iterable[BatchImage], selection: Selection = Selection.PART) -> BatchItem:
        """Create one item from one selection of files (one subject)."""
        images = list(images)
        if not images:
            raise ValueError("An item needs at least one image")
        item = BatchItem(images=images, selection=selection)
        self.items.append(item)
        return item

    def add_images(self, item_id: str, images: Iterable[BatchImage]) -> BatchItem:
        item = self.get(item_id)
        self._mark_edited(item)
        item.images.extend(images)
        return item

    def remove_image(self, item_id: str, image_id: str) -> Optional[BatchItem]:
        """Drop one image; returns None when the item became empty and was removed."""
        item = self.get(item_id)
        self._mark_edited(item)
        item.images = [image for image in item.images if image.id != image_id]
        if not item.images:
            self.items.remove(item)
            return None
        return item

    def split(self, item_id: str) -> List[BatchItem]:
        """Replace an item with one new item per image, keeping its position."""
        item = self.get(item_id)
        self._mark_edited(item)
        index = self.items.index(item)
        parts = [BatchItem(images=[image], selection=item.selection) for image in item.images]
        self.items[index:index + 1] = parts
        return parts

    def merge(self, target_id: str, source_id: str) -> BatchItem:
        """Move every image of `source_id` into `target_id` and drop the source."""
        if target_id == source_id:
            raise ValueError("Cannot merge an item into itself")
        target, source = self.get(target_id), self.get(source_id)
        self._mark_edited(target)
        self._mark_edited(source)
        target.images.extend(source.images)
        self.items.remove(source)
        return target

    def remove(self, item_id: str) -> None:
        self.items.remove(self.get(item_id))

    def clear(self) -> None:
        self.items.clear()

    @staticmethod
    def _mark_edited(item: BatchItem) -> None:
        if item.in_flight:
            raise ValueError(f"Item {item.id} is being processed and cannot be edited")
        item.reset()

    # -- processing ---------------------------------------------------------

    async def run(self) -> List[BatchItem]:
        """Process every pending or failed item, strictly one after another.

        Returns:
            The items that were processed in this run, in queue order.
        """
        queue: Deque[BatchItem] = deque(
            item for item in self.items if item.status in (BatchStatus.PENDING, BatchStatus.ERROR)
        )
        processed: List[BatchItem] = []
        while queue:
            item = queue.popleft()
            if item not in self.items:
                continue
            if item.status is BatchStatus.ERROR:
                item.reset()
            await self.process(item)
            processed.append(item)
        return processed

    async def process(self, item: BatchItem) -> BatchItem:
        """Run one pending item to `complete` or `error`. Never raises for pipeline failures."""
        item.transition(BatchStatus.UPLOADING)
        item.advance(UPLOAD_START, "Uploading images...")
        try:
            urls = await self._upload_all(item)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOGGER.warning("Upload failed for item %s: %s", item.id, exc)
            item.fail(str(exc) or "Upload failed")
            return item

        item.transition(BatchStatus.QUALITY_CHECK)
        item.advance(QUALITY_CHECK, "Checking image quality...")
        await self._check_quality(item, urls)

        item.transition(BatchStatus.ANALYZING)
        item.advance(ANALYZING, "Analyzing...")
        try:
            await self._analyze(item, urls)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOGGER.warning("Analysis failed for item %s: %s", item.id, exc)
            item.fail(str(exc) or "Analysis failed")
            return item

        item.transition(BatchStatus.COMPLETE)
        item.advance(COMPLETE)
        item.loading_message = None
        return item

    async def _upload_all(self, item: BatchItem) -> List[str]:
        total = len(item.images)
        urls: List[str] = []
        for index, image in enumerate(item.images, start=1):
            if not image.public_url:
                path = f"{item.id}/{image.id}-{image.file_name}"
                image.public_url = await self.api.upload(path, image.content_type, image.data)
            urls.append(image.public_url)
            item.advance(UPLOAD_START + (UPLOAD_DONE - UPLOAD_START) * index // total)
        return urls

    async def _check_quality(self, item: BatchItem, urls: List[str]) -> None:
        # Warnings only; a failed check never blocks the analysis.
        try:
            assessment = await self.api.check_quality(urls)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOGGER.info("Quality check skipped for item %s: %s", item.id, exc)
            return
        if not assessment.isHighQuality:
            item.quality_issues = list(assessment.issues)

    async def _analyze(self, item: BatchItem, urls: List[str]) -> None:
        selection = item.selection
        if selection is Selection.PART:
            item.result = _result_of(
                await self.api.analyze(urls, variant="part", prompt_context=self.prompt_context)
            )
            item.advance(PRODUCTS_DONE)
            return

        vehicle_details = None
        if selection in (Selection.FITMENT, Selection.ALL):
            item.advance(ANALYZING, "Identifying vehicle...")
            item.result = _result_of(
                await self.api.analyze(urls, variant="vehicle", prompt_context=self.prompt_context)
            )
            vehicle_details = _vehicle_details(item.result.get("data", {})) or None
            item.advance(FITMENT_DONE)

        if selection in (Selection.PRODUCTS, Selection.ALL):
            item.advance(FITMENT_DONE if selection is Selection.ALL else ANALYZING, "Detecting products...")
            envelope = await self.api.analyze(
                urls,
                variant="products",
                prompt_context=self.prompt_context,
                vehicle_details=vehicle_details,
            )
            item.detected_products = list(envelope.get("data", {}).get("products", []))
            if selection is Selection.PRODUCTS:
                item.result = _result_of(envelope)
            item.advance(PRODUCTS_DONE)
        elif selection is Selection.FITMENT:
            item.advance(PRODUCTS_DONE)
