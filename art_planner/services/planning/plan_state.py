# art_planner/services/planning/plan_state.py
"""Plan construction state machine.

EMPTY -> ITEMS_PARTITIONED -> DEPENDENCIES_RESOLVED -> CAPACITY_ALLOCATED -> VALIDATED

States are frozen; advance() returns a new state and refuses to skip or
repeat a stage. A run either reaches VALIDATED or raises.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple

from art_planner.errors import PlanStateError
from art_planner.schemas.dependency_graph import DependencyGraph
from art_planner.schemas.plan import ARTReadiness, Iteration, PlanSummary, ProgramIncrement
from art_planner.schemas.scoring import ScoredItem
from art_planner.schemas.team import Team
from art_planner.schemas.validation import ValidationWarning
from art_planner.utils.periods import PeriodWindow


class PlanStage(str, Enum):
    EMPTY = "empty"
    ITEMS_PARTITIONED = "items_partitioned"
    DEPENDENCIES_RESOLVED = "dependencies_resolved"
    CAPACITY_ALLOCATED = "capacity_allocated"
    VALIDATED = "validated"


_NEXT: Dict[PlanStage, Optional[PlanStage]] = {
    PlanStage.EMPTY: PlanStage.ITEMS_PARTITIONED,
    PlanStage.ITEMS_PARTITIONED: PlanStage.DEPENDENCIES_RESOLVED,
    PlanStage.DEPENDENCIES_RESOLVED: PlanStage.CAPACITY_ALLOCATED,
    PlanStage.CAPACITY_ALLOCATED: PlanStage.VALIDATED,
    PlanStage.VALIDATED: None,
}


@dataclass(frozen=True)
class PlanState:
    pi: ProgramIncrement
    items: Tuple[ScoredItem, ...]
    graph: DependencyGraph
    teams: Tuple[Team, ...]
    stage: PlanStage = PlanStage.EMPTY

    # ITEMS_PARTITIONED
    windows: Tuple[PeriodWindow, ...] = ()

    # DEPENDENCIES_RESOLVED: dependent id -> prerequisite ids inside the planned set
    hard_prerequisites: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    all_prerequisites: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    order: Tuple[str, ...] = ()  # gating-respecting priority order

    # CAPACITY_ALLOCATED
    iterations: Tuple[Iteration, ...] = ()
    placement: Dict[str, int] = field(default_factory=dict)

    # VALIDATED
    readiness: Optional[ARTReadiness] = None
    summary: Optional[PlanSummary] = None

    warnings: Tuple[ValidationWarning, ...] = ()
    history: Tuple[PlanStage, ...] = (PlanStage.EMPTY,)

    def advance(self, to_stage: PlanStage, **changes) -> "PlanState":
        if _NEXT.get(self.stage) != to_stage:
            raise PlanStateError(self.stage.value, to_stage.value)
        return replace(self, stage=to_stage, history=self.history + (to_stage,), **changes)

    def with_warnings(self, new: List[ValidationWarning]) -> Tuple[ValidationWarning, ...]:
        return self.warnings + tuple(new)


__all__ = ["PlanStage", "PlanState"]
