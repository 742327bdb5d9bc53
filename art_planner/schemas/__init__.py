from .work_item import (
    WorkItemType,
    DependencyType,
    DependencyStrength,
    DetectionMethod,
    WorkItem,
    DependencyEdge,
)
from .validation import WarningCode, ValidationWarning, ValidationReport
from .dependency_graph import GraphStatistics, CycleSeverity, CycleReport, DependencyGraph
from .scoring import ScoredItem, RecommendationType, ValueRecommendation
from .team import Team
from .decomposition import TraceabilityRecord, DecompositionResult
from .plan import (
    ProgramIncrement,
    IterationCapacity,
    AllocatedWorkItem,
    DeliverableValue,
    Iteration,
    ARTReadiness,
    PlanSummary,
    ARTPlan,
    PlanMove,
    DependencyBottleneck,
    ReadinessOptimization,
)

__all__ = [
    "WorkItemType",
    "DependencyType",
    "DependencyStrength",
    "DetectionMethod",
    "WorkItem",
    "DependencyEdge",
    "WarningCode",
    "ValidationWarning",
    "ValidationReport",
    "GraphStatistics",
    "CycleSeverity",
    "CycleReport",
    "DependencyGraph",
    "ScoredItem",
    "RecommendationType",
    "ValueRecommendation",
    "Team",
    "TraceabilityRecord",
    "DecompositionResult",
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
