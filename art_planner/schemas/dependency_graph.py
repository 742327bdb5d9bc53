# art_planner/schemas/dependency_graph.py
from __future__ import annotations

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field

from art_planner.schemas.validation import ValidationWarning
from art_planner.schemas.work_item import DependencyEdge, DependencyStrength, WorkItem


class GraphStatistics(BaseModel):
    model_config = ConfigDict(extra="ignore")

    node_count: int = 0
    edge_count: int = 0
    hard_dependencies: int = 0
    soft_dependencies: int = 0
    average_dependencies: float = 0.0  # edges / nodes
    independent_items: int = 0  # degree 0
    high_dependency_items: List[str] = Field(default_factory=list)
    critical_path_points: int = 0
    estimated_duration: int = 0  # total points across nodes


class CycleSeverity(str, Enum):
    CRITICAL = "critical"  # a hard or blocks edge sits on the cycle
    WARNING = "warning"
    INFO = "info"


class CycleReport(BaseModel):
    """One circular dependency (a strongly connected component) and how to untangle it."""
    model_config = ConfigDict(extra="ignore")

    item_ids: List[str]
    edge_ids: List[str] = Field(default_factory=list)
    severity: CycleSeverity = CycleSeverity.INFO
    suggestions: List[str] = Field(default_factory=list)


class DependencyGraph(BaseModel):
    """
    Analyzed dependency graph for one planning run.

    edges holds explicit plus structural edges. broken_edge_ids lists edges
    dropped to make the scheduling subgraph acyclic; they are still reported
    in edges but ignored by critical path and allocation.
    """
    model_config = ConfigDict(extra="ignore")

    nodes: List[WorkItem] = Field(default_factory=list)
    edges: List[DependencyEdge] = Field(default_factory=list)
    critical_path: List[str] = Field(default_factory=list)
    circular_dependencies: List[List[str]] = Field(default_factory=list)
    cycle_reports: List[CycleReport] = Field(default_factory=list)  # parallel to circular_dependencies
    broken_edge_ids: List[str] = Field(default_factory=list)
    statistics: GraphStatistics = Field(default_factory=GraphStatistics)
    warnings: List[ValidationWarning] = Field(default_factory=list)

    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    def scheduling_edges(self, hard_only: bool = True) -> List[DependencyEdge]:
        """Retained edges that order items in time."""
        broken = set(self.broken_edge_ids)
        return [
            e for e in self.edges
            if e.is_scheduling
            and e.id not in broken
            and (not hard_only or e.strength == DependencyStrength.HARD)
        ]

    def prerequisites_of(self, hard_only: bool = True) -> Dict[str, List[str]]:
        """dependent id -> sorted prerequisite ids over retained edges."""
        prereqs: Dict[str, set] = {}
        for e in self.scheduling_edges(hard_only=hard_only):
            prereqs.setdefault(e.dependent_id, set()).add(e.prerequisite_id)
        return {k: sorted(v) for k, v in prereqs.items()}


__all__ = ["GraphStatistics", "CycleSeverity", "CycleReport", "DependencyGraph"]
