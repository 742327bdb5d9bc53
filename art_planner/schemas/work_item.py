# art_planner/schemas/work_item.py
"""
Backlog snapshot models: work items and dependency edges.

These are the strict shapes the core operates on. Loose payloads from a
backlog provider are converted by art_planner.services.ingestion.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class WorkItemType(str, Enum):
    STORY = "story"
    FEATURE = "feature"
    EPIC = "epic"
    ENABLER = "enabler"


class DependencyType(str, Enum):
    REQUIRES = "requires"
    BLOCKS = "blocks"
    RELATES_TO = "relates_to"


class DependencyStrength(str, Enum):
    HARD = "hard"
    SOFT = "soft"


class DetectionMethod(str, Enum):
    MANUAL = "manual"
    KEYWORD = "keyword"
    STRUCTURAL = "structural"


class WorkItem(BaseModel):
    """A single backlog entry (story, feature, epic or enabler)."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(min_length=1)
    type: WorkItemType = WorkItemType.STORY
    title: str = ""
    description: str = ""
    points: int = Field(default=0, ge=0)
    priority: Optional[int] = None  # 1 = highest
    parent_id: Optional[str] = None

    acceptance_criteria: List[str] = Field(default_factory=list)
    labels: List[str] = Field(default_factory=list)
    attributes: Dict[str, Any] = Field(default_factory=dict)


class DependencyEdge(BaseModel):
    """
    Directed dependency between two work items.

    Orientation depends on type:
    - requires: source needs target done first (target is the prerequisite)
    - blocks: source must be done before target (source is the prerequisite)
    - relates_to: informational, no scheduling constraint
    """
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(min_length=1)
    source_id: str = Field(min_length=1)
    target_id: str = Field(min_length=1)
    type: DependencyType = DependencyType.REQUIRES
    strength: DependencyStrength = DependencyStrength.HARD
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    detection_method: DetectionMethod = DetectionMethod.MANUAL
    description: Optional[str] = None

    @model_validator(mode="after")
    def _no_self_edge(self) -> "DependencyEdge":
        if self.source_id == self.target_id:
            raise ValueError(f"Dependency edge {self.id} references {self.source_id} on both ends")
        return self

    @property
    def is_hard(self) -> bool:
        return self.strength == DependencyStrength.HARD

    @property
    def is_scheduling(self) -> bool:
        """True when the edge orders two items in time."""
        return self.type in (DependencyType.REQUIRES, DependencyType.BLOCKS)

    @property
    def prerequisite_id(self) -> Optional[str]:
        if self.type == DependencyType.REQUIRES:
            return self.target_id
        if self.type == DependencyType.BLOCKS:
            return self.source_id
        return None

    @property
    def dependent_id(self) -> Optional[str]:
        if self.type == DependencyType.REQUIRES:
            return self.source_id
        if self.type == DependencyType.BLOCKS:
            return self.target_id
        return None


__all__ = [
    "WorkItemType",
    "DependencyType",
    "DependencyStrength",
    "DetectionMethod",
    "WorkItem",
    "DependencyEdge",
]
