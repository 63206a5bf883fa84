# Copyright (c) Syntropy Systems
"""Pydantic models for gateway requests and responses."""

from __future__ import annotations

import math
from typing import Literal, Optional, Union

from pydantic import Field, field_validator, model_validator
from typing_extensions import Self

from .base import FrozenModel, GrowthBaseModel, JSONValue

PREVIEW_LIMIT = 20

TYPE_LABELS = {
    "fatigue": "Creative Fatigue",
    "reallocation": "Budget Reallocation",
}


def confidence_pct(confidence: float) -> int:
    """Round a [0, 1] confidence to a whole percentage, halves rounding up."""
    return math.floor(confidence * 100 + 0.5)


def type_label(rec_type: str) -> str:
    """Human label for a recommendation type."""
    return TYPE_LABELS.get(rec_type, TYPE_LABELS["reallocation"])


# --- Upload ---


class NormalizedRow(FrozenModel):
    """One normalized campaign-day row as echoed back by the gateway."""

    date: str
    campaign_name: str
    platform: str = "unknown"
    spend: float
    ctr: float = 0.0
    cpa: float = 0.0
    roas: float = 0.0
    impressions: Optional[int] = None
    clicks: Optional[int] = None
    conversions: Optional[int] = None
    revenue: Optional[float] = None


class UploadResult(FrozenModel):
    """Summary of a normalized upload."""

    cleaned_rows: int = Field(ge=0)
    dropped_rows: int = Field(ge=0)
    duplicates_merged: int = Field(ge=0)
    warnings: tuple[str, ...] = ()
    preview: tuple[NormalizedRow, ...] = ()

    @field_validator("preview")
    @classmethod
    def _check_preview_size(cls, value: tuple[NormalizedRow, ...]) -> tuple[NormalizedRow, ...]:
        if len(value) > PREVIEW_LIMIT:
            msg = f"preview holds {len(value)} rows, at most {PREVIEW_LIMIT} expected"
            raise ValueError(msg)
        return value


# --- Recommendations and benchmarks ---


class Recommendation(FrozenModel):
    """A confidence-scored recommendation produced by the analyze step."""

    id: str
    type: str
    title: str
    description: str = ""
    confidence: float = Field(ge=0.0, le=1.0)
    why_fired: str = ""
    trigger_metrics: dict[str, JSONValue] = Field(default_factory=dict)
    projected_impact: str = ""
    details: dict[str, JSONValue] = Field(default_factory=dict)
    source_ids: tuple[str, ...] = ()

    @property
    def confidence_pct(self) -> int:
        """Whole-percent confidence used for both badge and filtering."""
        return confidence_pct(self.confidence)

    @property
    def confidence_band(self) -> Literal["high", "medium", "low"]:
        if self.confidence >= 0.8:
            return "high"
        if self.confidence >= 0.6:
            return "medium"
        return "low"

    @property
    def platform(self) -> str:
        """Platform from details, ``"all"`` when the gateway left it out."""
        value = self.details.get("platform")
        return str(value) if value else "all"

    @property
    def type_label(self) -> str:
        return type_label(self.type)


class Benchmark(FrozenModel):
    """Research citation used as supporting evidence."""

    id: str
    title: str
    year: int
    key_finding: str = ""
    source: str = ""
    source_url: str = ""
    platform: Optional[str] = None
    metric_type: Optional[str] = None
    vertical: Optional[str] = None
    notes: Optional[str] = None


class AnalyzeAck(GrowthBaseModel):
    """Acknowledgement returned by the analyze operation."""

    success: bool = True
    recommendations_count: int = 0


# --- Feedback and evaluation ---


class FeedbackJudgment(FrozenModel):
    """A binary usefulness judgment for one recommendation."""

    recommendation_id: str
    recommendation_type: str
    is_useful: bool


class FeedbackAck(GrowthBaseModel):
    """Stored feedback as echoed by the gateway."""

    id: Optional[str] = None
    recommendation_id: str
    recommendation_type: str
    is_useful: bool


class TypePrecision(FrozenModel):
    """Precision for one recommendation type."""

    precision: float = Field(ge=0.0, le=1.0)
    useful: int = Field(ge=0)
    total: int = Field(ge=0)


class EvaluationMetrics(FrozenModel):
    """Aggregate precision of feedback-judged recommendations."""

    total_feedback: int = Field(default=0, ge=0)
    useful_count: int = Field(default=0, ge=0)
    overall_precision: float = Field(default=0.0, ge=0.0, le=1.0)
    by_type: dict[str, TypePrecision] = Field(default_factory=dict)


# --- Simulation ---


class Interval(FrozenModel):
    """Bootstrap median with its 90% interval."""

    median: float
    p5: float
    p95: float

    @model_validator(mode="after")
    def _check_order(self) -> Self:
        if not self.p5 <= self.median <= self.p95:
            msg = f"expected p5 <= median <= p95, got {self.p5}, {self.median}, {self.p95}"
            raise ValueError(msg)
        return self


class CpaProjection(FrozenModel):
    """Projected cost per acquisition after the action."""

    median: float
    reduction_pct: float


class CurrentMetrics(FrozenModel):
    """Baseline campaign performance."""

    avg_daily_spend: float
    avg_roas: float
    avg_cpa: Union[float, Literal["N/A"]] = "N/A"

    @property
    def has_cpa(self) -> bool:
        return self.avg_cpa != "N/A"


class ProjectedMetrics(FrozenModel):
    """Projected outcome metrics under the simulated action."""

    roas: Interval
    daily_revenue_lift: Interval
    cpa: Optional[CpaProjection] = None


class SimulationResult(FrozenModel):
    """Result of a counterfactual bootstrap simulation."""

    action: Optional[str] = None
    campaign_name: Optional[str] = None
    current_metrics: CurrentMetrics
    projected_metrics: ProjectedMetrics
    confidence_interval: str = ""
    impact_summary: str = ""


# --- Generic ---


class ErrorResponse(GrowthBaseModel):
    """Error response."""

    detail: str
