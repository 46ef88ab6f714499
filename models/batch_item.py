"""Client-side unit of work for the batch orchestrator.

A BatchItem is one subject (a part or a vehicle) shown in one or more images.
Its lifecycle is an explicit state machine; illegal moves raise ValueError.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional


class BatchStatus(str, Enum):
    PENDING = "pending"
    UPLOADING = "uploading"
    QUALITY_CHECK = "quality_check"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    ERROR = "error"


class Selection(str, Enum):
    """Which analyses the user asked for."""

    PART = "part"
    FITMENT = "fitment"
    PRODUCTS = "products"
    ALL = "all"


_IN_FLIGHT: FrozenSet[BatchStatus] = frozenset(
    {BatchStatus.UPLOADING, BatchStatus.QUALITY_CHECK, BatchStatus.ANALYZING}
)

ALLOWED_TRANSITIONS: Dict[BatchStatus, FrozenSet[BatchStatus]] = {
    BatchStatus.PENDING: frozenset({BatchStatus.UPLOADING}),
    BatchStatus.UPLOADING: frozenset({BatchStatus.QUALITY_CHECK, BatchStatus.ERROR}),
    BatchStatus.QUALITY_CHECK: frozenset({BatchStatus.ANALYZING, BatchStatus.ERROR}),
    BatchStatus.ANALYZING: frozenset({BatchStatus.COMPLETE, BatchStatus.ERROR}),
    BatchStatus.COMPLETE: frozenset({BatchStatus.PENDING}),
    BatchStatus.ERROR: frozenset({BatchStatus.PENDING}),
}


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class BatchImage:
    """One local image waiting for (or done with) upload.

    Attributes:
        file_name: Original file name, used to build the storage path.
        content_type: MIME type sent with the upload PUT.
        data: Raw image bytes.
        public_url: Set once the upload succeeded.
    """

    file_name: str
    content_type: str
    data: bytes = field(repr=False, default=b"")
    public_url: Optional[str] = None
    id: str = field(default_factory=_new_id)


@dataclass
class BatchItem:
    images: List[BatchImage]
    selection: Selection = Selection.PART
    id: str = field(default_factory=_new_id)
    status: BatchStatus = BatchStatus.PENDING
    progress: int = 0
    result: Dict[str, Any] = field(default_factory=dict)
    detected_products: List[Dict[str, Any]] = field(default_factory=list)
    quality_issues: List[str] = field(default_factory=list)
    error: Optional[str] = None
    loading_message: Optional[str] = None

    @property
    def in_flight(self) -> bool:
        return self.status in _IN_FLIGHT

    def transition(self, status: BatchStatus) -> None:
        """Move to `status`, raising ValueError when the move is not allowed."""
        if status not in ALLOWED_TRANSITIONS[self.status]:
            raise ValueError(f"Illegal transition {self.status.value} -> {status.value}")
        self.status = status

    def advance(self, progress: int, message: Optional[str] = None) -> None:
        """Raise progress; a lower value than the current one is ignored."""
        self.progress = max(self.progress, min(100, int(progress)))
        if message is not None:
            self.loading_message = message

    def fail(self, message: str) -> None:
        self.transition(BatchStatus.ERROR)
        self.error = message
        self.loading_message = None

    def reset(self) -> None:
        """Return to `pending` and clear every output of the previous run."""
        if self.status is not BatchStatus.PENDING:
            self.transition(BatchStatus.PENDING)
        self.progress = 0
        self.result = {}
        self.detected_products = []
        self.quality_issues = []
        self.error = None
        self.loading_message = None
