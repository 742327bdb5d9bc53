# art_planner/services/planning/readiness_optimizer.py
"""
Readiness optimizer: an optional pass over a validated ARTPlan.

Steps:
1) find dependency bottlenecks (items that many hard dependents wait on)
2) pull each bottleneck into the earliest iteration with room on any team
3) fill idle iterations with the lowest-priority work that may move there
4) re-validate the plan and report the readiness gain

A move never puts a hard prerequisite after its dependent and never pushes a
team row past its available capacity. Bottleneck moves are kept when readiness
does not drop; idle-iteration moves only when readiness improves.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Set

from art_planner.schemas.dependency_graph import DependencyGraph
from art_planner.schemas.plan import (
    AllocatedWorkItem,
    ARTPlan,
    ARTReadiness,
    DependencyBottleneck,
    Iteration,
    PlanMove,
    ReadinessOptimization,
)
from art_planner.services.planning.config import PlanningConfig
from art_planner.services.planning.plan_validator import art_readiness, deliverable_value, plan_summary

logger = logging.getLogger(__name__)

_EPS = 1e-9


def hard_dependents(graph: DependencyGraph) -> Dict[str, List[str]]:
    """prerequisite id -> sorted hard dependent ids over retained edges."""
    dependents: Dict[str, Set[str]] = {}
    for e in graph.scheduling_edges(hard_only=True):
        dependents.setdefault(e.prerequisite_id, set()).add(e.dependent_id)
    return {k: sorted(v) for k, v in dependents.items()}


def dependency_bottlenecks(
    plan: ARTPlan, graph: DependencyGraph, min_dependents: int = 3
) -> List[DependencyBottleneck]:
    """Items gating at least min_dependents others, most dependents first."""
    found = [
        DependencyBottleneck(item_id=item_id, dependent_ids=deps, iteration_index=plan.iteration_of(item_id))
        for item_id, deps in hard_dependents(graph).items()
        if len(deps) >= min_dependents
    ]
    return sorted(found, key=lambda b: (-b.dependent_count, b.item_id))


def _priority_key(alloc: AllocatedWorkItem):
    return -alloc.work_item.wsjf_score, alloc.work_item.id


class _Layout:
    """Working copy of a plan's placement; each tentative move is scored before it is kept."""

    def __init__(self, plan: ARTPlan, graph: DependencyGraph, config: PlanningConfig):
        self.config = config
        self.warnings = list(plan.validation.warnings)
        self.iterations: List[Iteration] = [it.model_copy(deep=True) for it in plan.iterations]
        self.placement: Dict[str, int] = {
            a.work_item.id: it.index for it in self.iterations for a in it.allocated_work
        }
        prereqs = graph.prerequisites_of(hard_only=True)
        self.hard_prerequisites: Dict[str, Sequence[str]] = {i: tuple(prereqs.get(i, ())) for i in self.placement}
        self.dependents = hard_dependents(graph)
        self.score = self.readiness().readiness_score

    def validated(self) -> List[Iteration]:
        return [
            it.model_copy(update={"deliverable_value": deliverable_value(it, self.placement, self.hard_prerequisites)})
            for it in self.iterations
        ]

    def readiness(self) -> ARTReadiness:
        return art_readiness(self.validated(), self.placement, self.hard_prerequisites, self.warnings, self.config)

    def allocation(self, item_id: str) -> AllocatedWorkItem:
        k = self.placement[item_id]
        return next(a for a in self.iterations[k].allocated_work if a.work_item.id == item_id)

    def can_hold(self, item_id: str, k: int) -> bool:
        """Hard prerequisites land no later than k and hard dependents no earlier."""
        for p in self.hard_prerequisites.get(item_id, ()):
            if p in self.placement and self.placement[p] > k:
                return False
        for d in self.dependents.get(item_id, ()):
            if d in self.placement and self.placement[d] < k:
                return False
        return True

    def team_with_room(self, alloc: AllocatedWorkItem, k: int) -> Optional[str]:
        """The item's own team when it fits in iteration k, else the roomiest team that does."""
        rows = sorted(
            self.iterations[k].capacity,
            key=lambda c: (c.team_id != alloc.assigned_team, -c.remaining_capacity, c.team_id),
        )
        for cap in rows:
            if cap.is_over_allocated:
                continue
            if cap.allocated_points + alloc.allocated_points <= cap.available_capacity + _EPS:
                return cap.team_id
        return None

    def try_move(self, item_id: str, to_k: int, team_id: str, reason: str, require_gain: bool) -> Optional[PlanMove]:
        from_k = self.placement[item_id]
        saved = list(self.iterations)
        for k in (from_k, to_k):
            self.iterations[k] = self.iterations[k].model_copy(deep=True)

        source, target = self.iterations[from_k], self.iterations[to_k]
        alloc = next(a for a in source.allocated_work if a.work_item.id == item_id)
        source.allocated_work = [a for a in source.allocated_work if a.work_item.id != item_id]
        source.capacity_for(alloc.assigned_team).allocated_points -= alloc.allocated_points
        target.allocated_work = target.allocated_work + [alloc.model_copy(update={"assigned_team": team_id})]
        target.capacity_for(team_id).allocated_points += alloc.allocated_points
        self.placement[item_id] = to_k

        after = self.readiness().readiness_score
        if after < self.score - _EPS or (require_gain and after <= self.score + _EPS):
            self.iterations = saved
            self.placement[item_id] = from_k
            return None

        self.score = after
        return PlanMove(
            item_id=item_id,
            from_iteration=from_k,
            to_iteration=to_k,
            from_team=alloc.assigned_team,
            to_team=team_id,
            reason=reason,
        )


class ReadinessOptimizer:
    """Moves already-allocated work to raise ART readiness; never drops or re-scores items."""

    def __init__(self, config: Optional[PlanningConfig] = None):
        self.config = config or PlanningConfig()

    def optimize(self, plan: ARTPlan, graph: DependencyGraph) -> ReadinessOptimization:
        layout = _Layout(plan, graph, self.config)
        before = layout.score
        bottlenecks = dependency_bottlenecks(plan, graph, self.config.bottleneck_min_dependents)

        moves: List[PlanMove] = []
        moves.extend(self._pull_bottlenecks(layout, bottlenecks))
        moves.extend(self._fill_idle_iterations(layout, self.config.max_rebalance_moves - len(moves)))

        iterations = layout.validated()
        placed = dict(layout.placement)
        bottlenecks = [b.model_copy(update={"iteration_index": placed.get(b.item_id)}) for b in bottlenecks]

        readiness = art_readiness(iterations, placed, layout.hard_prerequisites, layout.warnings, self.config)
        readiness = readiness.model_copy(
            update={"recommendations": readiness.recommendations + self._bottleneck_recommendations(bottlenecks)}
        )
        summary = plan_summary(iterations, graph, readiness, self.config)

        metadata = dict(plan.metadata)
        metadata["readiness_optimization"] = {
            "moves": [m.model_dump() for m in moves],
            "readiness_before": before,
            "readiness_after": readiness.readiness_score,
        }
        optimized = plan.model_copy(
            update={"iterations": iterations, "art_readiness": readiness, "summary": summary, "metadata": metadata}
        )

        logger.info(
            "planning.optimized",
            extra={
                "pi_id": plan.program_increment.id,
                "count": len(moves),
                "readiness_score": readiness.readiness_score,
            },
        )
        return ReadinessOptimization(
            plan=optimized,
            moves=moves,
            bottlenecks=bottlenecks,
            readiness_before=before,
            readiness_after=readiness.readiness_score,
        )

    # -------------------------
    # Moves
    # -------------------------

    def _pull_bottlenecks(self, layout: _Layout, bottlenecks: Sequence[DependencyBottleneck]) -> List[PlanMove]:
        moves: List[PlanMove] = []
        for b in bottlenecks:
            if len(moves) >= self.config.max_rebalance_moves:
                break
            k = layout.placement.get(b.item_id)
            if not k:  # unplanned, or already in the first iteration
                continue
            alloc = layout.allocation(b.item_id)
            if alloc.is_over_allocated:
                continue
            for j in range(k):
                team_id = layout.team_with_room(alloc, j) if layout.can_hold(b.item_id, j) else None
                if team_id is None:
                    continue
                move = layout.try_move(
                    b.item_id, j, team_id, f"Reduce dependency bottleneck ({b.dependent_count} dependents)", False
                )
                if move is not None:
                    moves.append(move)
                    logger.debug("planning.rebalanced", extra={"item_id": b.item_id, "reason": move.reason})
                    break
        return moves

    def _fill_idle_iterations(self, layout: _Layout, budget: int) -> List[PlanMove]:
        moves: List[PlanMove] = []
        for j in range(len(layout.iterations)):
            if len(moves) >= budget:
                break
            if layout.iterations[j].allocated_work:
                continue
            # only iterations that keep at least one item give work away
            candidates = [
                a
                for it in layout.iterations
                if it.index != j and len(it.allocated_work) > 1
                for a in it.allocated_work
                if not a.is_over_allocated
            ]
            for alloc in sorted(candidates, key=_priority_key, reverse=True):
                item_id = alloc.work_item.id
                team_id = layout.team_with_room(alloc, j) if layout.can_hold(item_id, j) else None
                if team_id is None:
                    continue
                reason = f"Deliver working software in {layout.iterations[j].name}"
                move = layout.try_move(item_id, j, team_id, reason, True)
                if move is not None:
                    moves.append(move)
                    logger.debug("planning.rebalanced", extra={"item_id": item_id, "reason": move.reason})
                    break
        return moves

    def _bottleneck_recommendations(self, bottlenecks: Sequence[DependencyBottleneck]) -> List[str]:
        return [
            f"{b.item_id} gates {b.dependent_count} items from Iteration {b.iteration_index + 1}; "
            f"schedule it earlier or split it."
            for b in bottlenecks
            if b.iteration_index
        ]


__all__ = ["hard_dependents", "dependency_bottlenecks", "ReadinessOptimizer"]
