# art_planner/services/planning/iteration_planner.py
"""
Iteration planner: turns scored, dependency-annotated items plus team
capacity into an ARTPlan for one Program Increment.

Each stage is a pure function over the previous PlanState:
  _partition -> _resolve_dependencies -> _allocate -> _validate
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Set

from art_planner.errors import InputContractError
from art_planner.schemas.dependency_graph import DependencyGraph
from art_planner.schemas.plan import ARTPlan, ProgramIncrement
from art_planner.schemas.scoring import ScoredItem
from art_planner.schemas.team import Team
from art_planner.schemas.validation import ValidationReport, ValidationWarning, WarningCode
from art_planner.services.planning.allocator import allocate, priority_order
from art_planner.services.planning.capacity import ensure_team_capacity
from art_planner.services.planning.config import PlanningConfig
from art_planner.services.planning.plan_state import PlanStage, PlanState
from art_planner.services.planning.plan_validator import art_readiness, deliverable_value, plan_summary
from art_planner.utils.periods import PeriodWindow, split_into_iterations

logger = logging.getLogger(__name__)


class IterationPlanner:
    def __init__(self, config: Optional[PlanningConfig] = None):
        self.config = config or PlanningConfig()

    def plan_art(
        self,
        pi: ProgramIncrement,
        items: Iterable[ScoredItem],
        graph: DependencyGraph,
        teams: Iterable[Team],
    ) -> ARTPlan:
        """
        Build the ARTPlan.

        Raises:
            InputContractError: unknown or duplicate items, duplicate teams,
                no teams for a non-empty backlog, or a zero-capacity team.
        """
        state = PlanState(
            pi=pi,
            items=tuple(sorted(items, key=lambda s: (-s.wsjf_score, s.id))),
            graph=graph,
            teams=tuple(teams),
            warnings=tuple(graph.warnings),
        )
        self._check_inputs(state)
        logger.info(
            "planning.start",
            extra={"pi_id": pi.id, "count": len(state.items), "total": len(state.teams)},
        )

        state = self._partition(state)
        state = self._resolve_dependencies(state)
        state = self._allocate(state)
        state = self._validate(state)

        logger.info(
            "planning.done",
            extra={
                "pi_id": pi.id,
                "readiness_score": state.readiness.readiness_score,
                "count": len(state.warnings),
            },
        )

        return ARTPlan(
            program_increment=pi,
            iterations=list(state.iterations),
            art_readiness=state.readiness,
            summary=state.summary,
            critical_path=list(graph.critical_path),
            validation=ValidationReport.from_warnings(list(state.warnings)),
            metadata={
                "stages": [s.value for s in state.history],
                "iteration_length_days": self.config.iteration_length_days,
                "broken_edge_ids": list(graph.broken_edge_ids),
            },
        )

    # -------------------------
    # Input contract
    # -------------------------

    def _check_inputs(self, state: PlanState) -> None:
        node_ids = set(state.graph.node_ids())
        seen: Set[str] = set()
        for item in state.items:
            if item.id in seen:
                raise InputContractError("DUPLICATE_ITEM_ID", f"Item {item.id} is listed twice.", item_ids=[item.id])
            seen.add(item.id)
            if item.id not in node_ids:
                raise InputContractError(
                    "ITEM_NOT_IN_GRAPH",
                    f"Item {item.id} is not a node of the dependency graph.",
                    item_ids=[item.id],
                )

        team_ids: Set[str] = set()
        for team in state.teams:
            if team.id in team_ids:
                raise InputContractError("DUPLICATE_TEAM_ID", f"Team {team.id} is listed twice.")
            team_ids.add(team.id)
            ensure_team_capacity(team)

        if state.items and not state.teams:
            raise InputContractError("NO_TEAMS", "Cannot allocate work items without any team.")

    # -------------------------
    # Stages
    # -------------------------

    def _partition(self, state: PlanState) -> PlanState:
        window = PeriodWindow(start=state.pi.start_date, end=state.pi.end_date)
        windows = split_into_iterations(window, self.config.iteration_length_days)
        logger.debug("planning.partitioned", extra={"pi_id": state.pi.id, "count": len(windows)})
        return state.advance(PlanStage.ITEMS_PARTITIONED, windows=tuple(windows))

    def _resolve_dependencies(self, state: PlanState) -> PlanState:
        planned = {i.id for i in state.items}
        hard = state.graph.prerequisites_of(hard_only=True)
        every = state.graph.prerequisites_of(hard_only=False)

        warnings: List[ValidationWarning] = []
        for item in state.items:
            outside = [p for p in hard.get(item.id, []) if p not in planned]
            if outside:
                warnings.append(
                    ValidationWarning(
                        code=WarningCode.UNPLANNED_DEPENDENCY,
                        message=f"Item {item.id} has hard prerequisite(s) outside this plan: {', '.join(outside)}.",
                        item_ids=[item.id] + outside,
                    )
                )

        hard_prereqs = {i.id: tuple(hard.get(i.id, [])) for i in state.items}
        order, deadlocked = priority_order(state.items, hard_prereqs)
        if deadlocked:
            warnings.append(
                ValidationWarning(
                    code=WarningCode.DEPENDENCY_DEADLOCK,
                    message="Hard dependencies could not be ordered; items placed by priority only.",
                    item_ids=list(deadlocked),
                )
            )

        for w in warnings:
            logger.warning("planning.dependency_warning", extra={"warning": w.message, "pi_id": state.pi.id})

        return state.advance(
            PlanStage.DEPENDENCIES_RESOLVED,
            hard_prerequisites=hard_prereqs,
            all_prerequisites={i.id: tuple(every.get(i.id, [])) for i in state.items},
            order=tuple(order),
            warnings=state.with_warnings(warnings),
        )

    def _allocate(self, state: PlanState) -> PlanState:
        iterations, placement, warnings = allocate(
            state.pi,
            state.windows,
            state.teams,
            state.items,
            state.order,
            state.hard_prerequisites,
            state.all_prerequisites,
            self.config,
        )
        logger.info(
            "planning.allocate.done",
            extra={"pi_id": state.pi.id, "count": len(placement), "total": len(warnings)},
        )
        return state.advance(
            PlanStage.CAPACITY_ALLOCATED,
            iterations=tuple(iterations),
            placement=placement,
            warnings=state.with_warnings(warnings),
        )

    def _validate(self, state: PlanState) -> PlanState:
        iterations = tuple(
            it.model_copy(update={"deliverable_value": deliverable_value(it, state.placement, state.hard_prerequisites)})
            for it in state.iterations
        )
        readiness = art_readiness(
            iterations, state.placement, state.hard_prerequisites, state.warnings, self.config
        )
        summary = plan_summary(iterations, state.graph, readiness, self.config)
        return state.advance(PlanStage.VALIDATED, iterations=iterations, readiness=readiness, summary=summary)


__all__ = ["IterationPlanner"]
