# art_planner/schemas/scoring.py

from enum import Enum
from typing import Any, List, Literal, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from art_planner.schemas.work_item import WorkItem


RecommendedPriority = Literal["urgent", "high", "medium", "low"]

# Accepted attribute keys for WSJF estimates supplied by the backlog provider
ESTIMATE_ATTRIBUTE_KEYS = {
    "business_value": ("business_value", "businessValue", "user_business_value"),
    "time_criticality": ("time_criticality", "timeCriticality"),
    "risk_opportunity": ("risk_opportunity", "riskOpportunity", "risk_reduction", "riskReduction"),
}


def _first_number(attributes: Mapping[str, Any], keys: Sequence[str]) -> Optional[float]:
    for key in keys:
        value = attributes.get(key)
        if value is None or value == "":
            continue
        try:
            return float(value)
        except (TypeError, ValueError):
            continue
    return None


class ScoredItem(WorkItem):
    """
    WorkItem plus WSJF inputs and result.

    Estimate fields are Optional on the way in (upstream estimation may be
    incomplete); the scorer fills defaults and sets wsjf_score.
    """

    business_value: Optional[float] = Field(default=None, ge=0)
    time_criticality: Optional[float] = Field(default=None, ge=0)
    risk_opportunity: Optional[float] = Field(default=None, ge=0)
    # risk_opportunity after the critical-path multiplier; the raw estimate is never overwritten
    effective_risk_opportunity: Optional[float] = Field(default=None, ge=0)
    job_size: float = Field(default=1.0, gt=0)
    wsjf_score: float = 0.0
    on_critical_path: bool = False
    recommended_priority: Optional[RecommendedPriority] = None

    @property
    def cost_of_delay(self) -> float:
        risk = self.effective_risk_opportunity if self.effective_risk_opportunity is not None else self.risk_opportunity
        return (self.business_value or 0.0) + (self.time_criticality or 0.0) + (risk or 0.0)

    @classmethod
    def from_work_item(cls, item: WorkItem, **overrides: Any) -> "ScoredItem":
        """Lift a WorkItem, picking WSJF estimates out of its attributes when present."""
        data = item.model_dump()
        for field_name, keys in ESTIMATE_ATTRIBUTE_KEYS.items():
            data[field_name] = _first_number(item.attributes, keys)
        data["job_size"] = float(max(item.points, 1))
        data.update(overrides)
        return cls.model_validate(data)


class RecommendationType(str, Enum):
    PRIORITIZE = "prioritize"  # quick win: high WSJF, small job
    SPLIT = "split"
    DELAY = "delay"
    COMBINE = "combine"  # batch similar small stories


class ValueRecommendation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    recommendation_type: RecommendationType
    item_ids: List[str]
    rationale: str
    expected_impact: str = ""
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)


__all__ = [
    "RecommendedPriority",
    "ScoredItem",
    "ESTIMATE_ATTRIBUTE_KEYS",
    "RecommendationType",
    "ValueRecommendation",
]
