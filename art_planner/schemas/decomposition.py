# art_planner/schemas/decomposition.py

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from art_planner.schemas.validation import ValidationWarning
from art_planner.schemas.work_item import WorkItem


class TraceabilityRecord(BaseModel):
    """Parent -> children link emitted for external audit trails."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    parent_id: str
    child_ids: List[str]
    threshold: int
    parent_points: int


class DecompositionResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    items: List[WorkItem] = Field(default_factory=list)
    records: List[TraceabilityRecord] = Field(default_factory=list)
    warnings: List[ValidationWarning] = Field(default_factory=list)


__all__ = ["TraceabilityRecord", "DecompositionResult"]
