"""Best-effort persistence of completed analyses."""

from __future__ import annotations

import logging
from typing import Optional

from dal.analysis_dal import AnalysisDAL
from models.analysis_record import AnalysisRecord
from utils.errors import PersistenceError

LOGGER = logging.getLogger(__name__)


class ResultPersister:
    """Write analysis records without ever failing the caller.

    A failed write is logged and dropped: no retry, no queue.
    """

    def __init__(self, dal: AnalysisDAL) -> None:
        if dal is None:
            raise ValueError("AnalysisDAL is required.")
        self.dal = dal

    async def persist(self, record: AnalysisRecord) -> Optional[int]:
        """Store `record` and return its id, or None when the write failed."""
        try:
            return await self._write(record)
        except PersistenceError as exc:
            LOGGER.error("Failed to persist analysis for %s: %s", record.image_url, exc)
            return None

    async def _write(self, record: AnalysisRecord) -> int:
        try:
            return await self.dal.create_record(record)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise PersistenceError(str(exc) or exc.__class__.__name__) from exc
