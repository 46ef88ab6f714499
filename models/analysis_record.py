from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ModelTier(str, Enum):
    """Which inference pass produced the accepted finding."""

    SCOUT = "scout"
    SNIPER = "sniper"


@dataclass
class AnalysisRecord:
    """In-memory representation of a row in the analysis_results table.

    Attributes:
        id: Primary key (None for new records).
        image_url: Public URL of the primary analysed image.
        analysis_data: The accepted structured finding, stored as JSON.
        model_used: Model id of the tier that produced `analysis_data`.
        created_at: Unix timestamp (seconds) when the row was inserted.
    """

    id: Optional[int]
    image_url: str
    analysis_data: Dict[str, Any] = field(default_factory=dict)
    model_used: Optional[str] = None
    created_at: Optional[int] = None


@dataclass
class AnalysisOutcome:
    """Result of one cascading analysis.

    Attributes:
        finding: Normalised structured finding from the accepted pass.
        tier: Tier that produced `finding`.
        model_id: Concrete model id behind `tier`.
        scout_confidence: The scout's self-reported confidence score.
        refinement_failed: True when the sniper ran but its output was unusable.
        record_id: Row id of the persisted record, None if persistence failed.
    """

    finding: Dict[str, Any]
    tier: ModelTier
    model_id: str
    scout_confidence: int
    refinement_failed: bool = False
    record_id: Optional[int] = None
