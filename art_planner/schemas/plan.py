# art_planner/schemas/plan.py
"""
Program Increment and ART plan schemas.
Produced by the iteration planner; handed to an external plan consumer.
"""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from art_planner.schemas.scoring import ScoredItem, ValueRecommendation
from art_planner.schemas.validation import ValidationReport
from art_planner.utils.periods import parse_period_key


RiskLevel = Literal["low", "medium", "high"]


class ProgramIncrement(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(min_length=1)
    name: str = ""
    start_date: date
    end_date: date  # inclusive
    objectives: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_dates(self) -> "ProgramIncrement":
        if self.end_date < self.start_date:
            raise ValueError(f"PI {self.id} ends ({self.end_date}) before it starts ({self.start_date})")
        return self

    @property
    def duration_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    @classmethod
    def from_period_key(cls, period_key: str, pi_id: Optional[str] = None, name: Optional[str] = None) -> "ProgramIncrement":
        """Build a PI spanning a period key such as '2026-Q1'."""
        window = parse_period_key(period_key)
        key = period_key.strip().upper()
        return cls(id=pi_id or key, name=name or f"PI {key}", start_date=window.start, end_date=window.end)


class IterationCapacity(BaseModel):
    model_config = ConfigDict(extra="ignore")

    team_id: str
    team_name: str = ""
    total_capacity: float
    available_capacity: float  # total * capacity_factor * confidence_factor
    confidence_factor: float
    allocated_points: float = 0.0
    is_over_allocated: bool = False

    @property
    def remaining_capacity(self) -> float:
        return self.available_capacity - self.allocated_points

    @property
    def utilization(self) -> float:
        if self.available_capacity <= 0:
            return 0.0
        return self.allocated_points / self.available_capacity


class AllocatedWorkItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    work_item: ScoredItem
    assigned_team: str
    allocated_points: float
    dependencies: List[str] = Field(default_factory=list)  # all scheduling prerequisites
    blocked_by: List[str] = Field(default_factory=list)  # hard prerequisites
    value_contribution: float = 0.0
    risk_level: RiskLevel = "low"
    is_over_allocated: bool = False


class DeliverableValue(BaseModel):
    model_config = ConfigDict(extra="ignore")

    can_deliver_working_software: bool = False
    value_confidence: float = 0.0
    total_value: float = 0.0
    unsatisfied_dependencies: List[str] = Field(default_factory=list)  # "dependent->prerequisite"


class Iteration(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    index: int  # 0-based
    start_date: date
    end_date: date  # inclusive
    teams: List[str] = Field(default_factory=list)
    capacity: List[IterationCapacity] = Field(default_factory=list)
    allocated_work: List[AllocatedWorkItem] = Field(default_factory=list)
    deliverable_value: DeliverableValue = Field(default_factory=DeliverableValue)

    @property
    def duration_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    @property
    def allocated_points(self) -> float:
        return sum(a.allocated_points for a in self.allocated_work)

    def capacity_for(self, team_id: str) -> Optional[IterationCapacity]:
        for cap in self.capacity:
            if cap.team_id == team_id:
                return cap
        return None


class ARTReadiness(BaseModel):
    model_config = ConfigDict(extra="ignore")

    readiness_score: float = Field(ge=0.0, le=1.0)
    components: Dict[str, float] = Field(default_factory=dict)
    is_ready: bool = False
    recommendations: List[str] = Field(default_factory=list)


class PlanSummary(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total_iterations: int = 0
    total_items: int = 0
    total_story_points: float = 0.0
    allocated_points: float = 0.0
    average_capacity_utilization: float = 0.0
    total_dependencies: int = 0
    critical_path_length: int = 0
    over_allocated_iterations: int = 0
    value_delivery_confidence: float = 0.0
    risk_level: RiskLevel = "low"


class ARTPlan(BaseModel):
    model_config = ConfigDict(extra="ignore")

    program_increment: ProgramIncrement
    iterations: List[Iteration] = Field(default_factory=list)
    art_readiness: ARTReadiness
    summary: PlanSummary
    critical_path: List[str] = Field(default_factory=list)
    validation: ValidationReport = Field(default_factory=ValidationReport)
    value_recommendations: List[ValueRecommendation] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def iteration_of(self, item_id: str) -> Optional[int]:
        """0-based iteration index holding item_id, or None."""
        for it in self.iterations:
            for alloc in it.allocated_work:
                if alloc.work_item.id == item_id:
                    return it.index
        return None


class PlanMove(BaseModel):
    """One work item relocated by the readiness optimizer."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    item_id: str
    from_iteration: int  # 0-based
    to_iteration: int
    from_team: str
    to_team: str
    reason: str


class DependencyBottleneck(BaseModel):
    model_config = ConfigDict(extra="ignore")

    item_id: str
    dependent_ids: List[str] = Field(default_factory=list)  # hard dependents over retained edges
    iteration_index: Optional[int] = None  # None when unplanned

    @property
    def dependent_count(self) -> int:
        return len(self.dependent_ids)


class ReadinessOptimization(BaseModel):
    model_config = ConfigDict(extra="ignore")

    plan: ARTPlan
    moves: List[PlanMove] = Field(default_factory=list)
    bottlenecks: List[DependencyBottleneck] = Field(default_factory=list)
    readiness_before: float = 0.0
    readiness_after: float = 0.0

    @property
    def improvement(self) -> float:
        return round(self.readiness_after - self.readiness_before, 4)


__all__ = [
    "RiskLevel",
    "ProgramIncrement",
    "IterationCapacity",
    "AllocatedWorkItem",
    "DeliverableValue",
    "Iteration",
    "ARTReadiness",
    "PlanSummary",
    "ARTPlan",
    "PlanMove",
    "DependencyBottleneck",
    "ReadinessOptimization",
]
