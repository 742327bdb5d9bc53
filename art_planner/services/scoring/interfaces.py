# art_planner/services/scoring/interfaces.py

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel, Field


class ScoringFramework(str, Enum):
    """Supported scoring framework identifiers."""
    WSJF = "WSJF"


class ScoreInputs(BaseModel):
    """Numeric inputs for a scoring engine.

    Missing estimates stay None here; the engine decides the fallback and
    reports it in ScoreResult.warnings.
    """
    business_value: Optional[float] = None
    time_criticality: Optional[float] = None
    risk_opportunity: Optional[float] = None
    job_size: Optional[float] = None

    # multiplier applied to risk_opportunity (critical path items)
    risk_multiplier: float = 1.0

    extra: Dict[str, Any] = Field(default_factory=dict)


class ScoreResult(BaseModel):
    """
    Result returned by a scoring engine.

    value_score: cost of delay (business value + time criticality + risk/opportunity)
    effort_score: job size used as the divisor
    overall_score: the primary prioritization metric (sortable)
    components: resolved components used to derive scores (for audit / transparency)
    warnings: non-fatal computation notes (e.g., defaults applied)
    """
    value_score: Optional[float] = None
    effort_score: Optional[float] = None
    overall_score: Optional[float] = None

    components: Dict[str, Any] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)
    defaulted_fields: List[str] = Field(default_factory=list)


class ScoringEngine(Protocol):
    """Protocol that all scoring engines must satisfy."""

    framework: ScoringFramework  # identifier of the engine

    def compute(self, inputs: ScoreInputs) -> ScoreResult:  # pragma: no cover - interface only
        ...


__all__ = [
    "ScoringFramework",
    "ScoreInputs",
    "ScoreResult",
    "ScoringEngine",
]
