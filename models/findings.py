"""Pydantic schemas for structured findings returned by the vision models."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Strict: a float such as 92.0 or a bool is a model miscalibration, not a score.
ConfidenceScore = Annotated[int, Field(strict=True, ge=0, le=100)]
Percentage = Annotated[float, Field(ge=0, le=100)]


class AnalysisVariant(str, Enum):
    """Prompt/schema pair the cascade runs with."""

    PART = "part"
    VEHICLE = "vehicle"
    PRODUCTS = "products"


class _Finding(BaseModel):
    model_config = ConfigDict(extra="allow")

    confidence_score: ConfidenceScore
    seo_optimized_alt_text: str = Field(..., min_length=1)


class PartFinding(_Finding):
    part_name: str = Field(..., min_length=1)
    manufacturer_guess: str
    category: Optional[str] = None
    function: Optional[str] = None
    compatibility: Optional[List[str]] = None


class PrimaryVehicle(BaseModel):
    model_config = ConfigDict(extra="allow")

    make: str
    model: str
    year: str
    trim: str
    cabStyle: Optional[str] = None
    bedLength: Optional[str] = None
    vehicleType: str
    color: str
    condition: str
    confidence: Percentage

    @field_validator("year", mode="before")
    @classmethod
    def year_to_text(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class OtherPossibility(BaseModel):
    model_config = ConfigDict(extra="allow")

    vehicle: str
    yearRange: str
    trim: str
    confidence: Percentage

    @field_validator("yearRange", mode="before")
    @classmethod
    def year_range_to_text(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class TieredRecommendation(BaseModel):
    title: str
    items: List[str]


class VehicleFinding(_Finding):
    primary: PrimaryVehicle
    engineDetails: Optional[str] = None
    otherPossibilities: List[OtherPossibility] = Field(default_factory=list)
    recommendedAccessories: List[str]
    tieredRecommendations: Optional[List[TieredRecommendation]] = None

    def vehicle_details(self) -> str:
        """Return "year make model trim" for follow-up prompts and links."""
        parts = [self.primary.year, self.primary.make, self.primary.model, self.primary.trim]
        return " ".join(part for part in parts if part)


class DetectedProduct(BaseModel):
    model_config = ConfigDict(extra="allow")

    productType: str = Field(..., min_length=1)
    brandModel: str
    confidence: Percentage


class ProductFinding(_Finding):
    products: List[DetectedProduct]


class QualityAssessment(BaseModel):
    """Outcome of the pre-analysis image quality gate."""

    model_config = ConfigDict(extra="ignore")

    isHighQuality: bool
    issues: List[str] = Field(default_factory=list)


FINDING_SCHEMAS: dict[AnalysisVariant, Type[_Finding]] = {
    AnalysisVariant.PART: PartFinding,
    AnalysisVariant.VEHICLE: VehicleFinding,
    AnalysisVariant.PRODUCTS: ProductFinding,
}
