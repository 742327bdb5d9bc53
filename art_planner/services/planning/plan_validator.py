# art_planner/services/planning/plan_validator.py
"""
Post-allocation validation: working software per iteration, ART readiness
and the plan summary. Operates on already-built iterations; never moves work.
"""
from __future__ import annotations

import statistics
from typing import Dict, List, Mapping, Sequence, Tuple

from art_planner.schemas.dependency_graph import DependencyGraph
from art_planner.schemas.plan import ARTReadiness, DeliverableValue, Iteration, PlanSummary, RiskLevel
from art_planner.schemas.validation import ValidationWarning, WarningCode
from art_planner.services.planning.config import PlanningConfig
from art_planner.services.scoring.utils import clamp


def unsatisfied_dependencies(
    iteration: Iteration, placement: Mapping[str, int], hard_prerequisites: Mapping[str, Sequence[str]]
) -> List[str]:
    """'dependent->prerequisite' pairs whose prerequisite is unplanned or later."""
    broken: List[str] = []
    for alloc in iteration.allocated_work:
        for p in hard_prerequisites.get(alloc.work_item.id, ()):
            where = placement.get(p)
            if where is None or where > iteration.index:
                broken.append(f"{alloc.work_item.id}->{p}")
    return broken


def deliverable_value(
    iteration: Iteration, placement: Mapping[str, int], hard_prerequisites: Mapping[str, Sequence[str]]
) -> DeliverableValue:
    """
    An iteration delivers working software when it carries work and every
    allocated item's hard prerequisites land in the same or an earlier
    iteration.
    """
    allocs = iteration.allocated_work
    broken = unsatisfied_dependencies(iteration, placement, hard_prerequisites)
    if not allocs:
        return DeliverableValue(can_deliver_working_software=False, value_confidence=0.0)

    blocked_items = {pair.split("->", 1)[0] for pair in broken}
    satisfied_ratio = 1 - len(blocked_items) / len(allocs)
    confidence = statistics.fmean(c.confidence_factor for c in iteration.capacity) if iteration.capacity else 0.0
    if any(c.is_over_allocated for c in iteration.capacity):
        confidence *= 0.8

    return DeliverableValue(
        can_deliver_working_software=not broken,
        value_confidence=round(satisfied_ratio * confidence, 4),
        total_value=sum(a.value_contribution for a in allocs),
        unsatisfied_dependencies=broken,
    )


def dependency_satisfaction(
    iterations: Sequence[Iteration], placement: Mapping[str, int], hard_prerequisites: Mapping[str, Sequence[str]]
) -> float:
    total = 0
    satisfied = 0
    for it in iterations:
        for alloc in it.allocated_work:
            for p in hard_prerequisites.get(alloc.work_item.id, ()):
                total += 1
                where = placement.get(p)
                if where is not None and where <= it.index:
                    satisfied += 1
    return 1.0 if total == 0 else satisfied / total


def capacity_balance(iterations: Sequence[Iteration], target: float) -> float:
    """1.0 when every team runs at target utilization; falls off both ways."""
    scores = [
        max(0.0, 1 - abs(cap.utilization - target) / target)
        for it in iterations
        for cap in it.capacity
        if cap.available_capacity > 0
    ]
    return statistics.fmean(scores) if scores else 0.0


def value_delivery_confidence(iterations: Sequence[Iteration]) -> float:
    if not iterations:
        return 0.0
    return sum(1 for it in iterations if it.deliverable_value.can_deliver_working_software) / len(iterations)


def recommendations_for(
    iterations: Sequence[Iteration],
    components: Dict[str, float],
    warnings: Sequence[ValidationWarning],
    config: PlanningConfig,
) -> List[str]:
    recs: List[str] = []
    overflow = [w for w in warnings if w.code == WarningCode.CAPACITY_OVERFLOW]
    if overflow:
        recs.append(
            f"{len(overflow)} item(s) exceed available capacity; add capacity, split them, or defer to the next PI."
        )
    cycles = [w for w in warnings if w.code == WarningCode.CYCLE_BROKEN]
    if cycles:
        recs.append(f"Resolve {len(cycles)} circular dependency chain(s) before committing the plan.")
    idle = [it.name for it in iterations if not it.allocated_work]
    if idle:
        recs.append(f"No work allocated to: {', '.join(idle)}.")
    blocked = [it.name for it in iterations if it.deliverable_value.unsatisfied_dependencies]
    if blocked:
        recs.append(f"Unsatisfied hard dependencies in: {', '.join(blocked)}.")
    if components.get("capacity_balance", 1.0) < 0.5:
        utilization = [c.utilization for it in iterations for c in it.capacity if c.available_capacity > 0]
        mean_u = statistics.fmean(utilization) if utilization else 0.0
        direction = "under" if mean_u < config.target_utilization else "over"
        recs.append(f"Teams are {direction}-utilized (mean {mean_u:.0%} vs target {config.target_utilization:.0%}).")
    return recs


def art_readiness(
    iterations: Sequence[Iteration],
    placement: Mapping[str, int],
    hard_prerequisites: Mapping[str, Sequence[str]],
    warnings: Sequence[ValidationWarning],
    config: PlanningConfig,
) -> ARTReadiness:
    components = {
        "dependency_satisfaction": round(dependency_satisfaction(iterations, placement, hard_prerequisites), 4),
        "capacity_balance": round(capacity_balance(iterations, config.target_utilization), 4),
        "value_delivery": round(value_delivery_confidence(iterations), 4),
    }
    weights = (config.weight_dependencies, config.weight_capacity, config.weight_value)
    weighted = (
        components["dependency_satisfaction"] * weights[0]
        + components["capacity_balance"] * weights[1]
        + components["value_delivery"] * weights[2]
    ) / sum(weights)
    score = round(clamp(weighted, 0.0, 1.0), 4)
    return ARTReadiness(
        readiness_score=score,
        components=components,
        is_ready=score >= config.ready_threshold,
        recommendations=recommendations_for(iterations, components, warnings, config),
    )


def plan_risk_level(readiness: float, over_allocated_iterations: int, config: PlanningConfig) -> RiskLevel:
    if readiness < 0.6 or over_allocated_iterations > 0:
        return "high"
    if readiness < config.ready_threshold:
        return "medium"
    return "low"


def plan_summary(
    iterations: Sequence[Iteration], graph: DependencyGraph, readiness: ARTReadiness, config: PlanningConfig
) -> PlanSummary:
    utilization = [c.utilization for it in iterations for c in it.capacity if c.available_capacity > 0]
    over = sum(1 for it in iterations if any(c.is_over_allocated for c in it.capacity))
    allocated: List[Tuple[float, float]] = [
        (a.allocated_points, float(a.work_item.points)) for it in iterations for a in it.allocated_work
    ]
    return PlanSummary(
        total_iterations=len(iterations),
        total_items=len(allocated),
        total_story_points=sum(p for _, p in allocated),
        allocated_points=sum(a for a, _ in allocated),
        average_capacity_utilization=round(statistics.fmean(utilization), 4) if utilization else 0.0,
        total_dependencies=len(graph.edges),
        critical_path_length=len(graph.critical_path),
        over_allocated_iterations=over,
        value_delivery_confidence=readiness.components.get("value_delivery", 0.0),
        risk_level=plan_risk_level(readiness.readiness_score, over, config),
    )


__all__ = [
    "unsatisfied_dependencies",
    "deliverable_value",
    "dependency_satisfaction",
    "capacity_balance",
    "value_delivery_confidence",
    "art_readiness",
    "plan_summary",
]
