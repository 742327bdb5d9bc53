# art_planner/services/planning/allocator.py
"""
Greedy topological allocation of scored items to (iteration, team) slots.

Items arrive in a priority order that already respects hard dependencies.
Each item may start no earlier than the latest iteration holding one of its
hard prerequisites. The best-matching team is tried across iterations first,
then the next team; an item that fits nowhere overflows into the final
iteration and the capacity row is flagged over-allocated.
"""
from __future__ import annotations

import heapq
import logging
from typing import Dict, List, Mapping, Sequence, Tuple

from art_planner.schemas.plan import AllocatedWorkItem, Iteration, IterationCapacity, ProgramIncrement, RiskLevel
from art_planner.schemas.scoring import ScoredItem
from art_planner.schemas.team import Team
from art_planner.schemas.validation import ValidationWarning, WarningCode
from art_planner.services.planning.capacity import build_iteration_capacity
from art_planner.services.planning.config import PlanningConfig
from art_planner.services.planning.team_matching import rank_teams
from art_planner.utils.periods import PeriodWindow

logger = logging.getLogger(__name__)

_EPS = 1e-9


def priority_order(
    items: Sequence[ScoredItem], hard_prerequisites: Mapping[str, Sequence[str]]
) -> Tuple[List[str], List[str]]:
    """
    Topological order over hard prerequisites, highest wsjf first among the
    items whose prerequisites are already ordered (ties by id).

    Returns (order, deadlocked); deadlocked ids are appended to order in
    plain priority order.
    """
    rank = {i.id: (-i.wsjf_score, i.id) for i in items}
    # prerequisites outside the planned set never gate
    remaining = {i.id: sum(1 for p in hard_prerequisites.get(i.id, ()) if p in rank) for i in items}
    dependents: Dict[str, List[str]] = {}
    for dep, prereqs in hard_prerequisites.items():
        if dep not in rank:
            continue
        for p in prereqs:
            if p in rank:
                dependents.setdefault(p, []).append(dep)

    ready = [rank[i] for i, n in remaining.items() if n == 0]
    heapq.heapify(ready)
    order: List[str] = []
    while ready:
        _, item_id = heapq.heappop(ready)
        order.append(item_id)
        for dep in dependents.get(item_id, []):
            remaining[dep] -= 1
            if remaining[dep] == 0:
                heapq.heappush(ready, rank[dep])

    placed = set(order)
    deadlocked = sorted((i for i in remaining if i not in placed), key=lambda i: rank[i])
    return order + deadlocked, deadlocked


def risk_level_for(
    item: ScoredItem, hard_prerequisites: Sequence[str], over_allocated: bool, config: PlanningConfig
) -> RiskLevel:
    if over_allocated or len(hard_prerequisites) >= 3:
        return "high"
    if item.on_critical_path or hard_prerequisites or item.points > config.max_story_points:
        return "medium"
    return "low"


def iteration_id(pi: ProgramIncrement, index: int) -> str:
    return f"{pi.id}-iteration-{index + 1}"


def allocate(
    pi: ProgramIncrement,
    windows: Sequence[PeriodWindow],
    teams: Sequence[Team],
    items: Sequence[ScoredItem],
    order: Sequence[str],
    hard_prerequisites: Mapping[str, Sequence[str]],
    all_prerequisites: Mapping[str, Sequence[str]],
    config: PlanningConfig,
) -> Tuple[List[Iteration], Dict[str, int], List[ValidationWarning]]:
    """Place every item; returns (iterations, item id -> iteration index, warnings)."""
    by_id = {i.id: i for i in items}
    keyword_table = config.keyword_table()
    last = len(windows) - 1

    capacity: List[Dict[str, IterationCapacity]] = [
        {t.id: build_iteration_capacity(t, w.days, config.iteration_length_days) for t in teams}
        for w in windows
    ]
    work: List[List[AllocatedWorkItem]] = [[] for _ in windows]
    placement: Dict[str, int] = {}
    warnings: List[ValidationWarning] = []

    for item_id in order:
        item = by_id[item_id]
        hard = list(hard_prerequisites.get(item_id, ()))
        earliest = max((placement[p] for p in hard if p in placement), default=0)
        ranked = rank_teams(item, teams, capacity[earliest], keyword_table)

        slot = None
        for team in ranked:
            for k in range(earliest, last + 1):
                cap = capacity[k][team.id]
                if cap.allocated_points + item.points <= cap.available_capacity + _EPS:
                    slot = (k, team)
                    break
            if slot is not None:
                break

        over_allocated = slot is None
        if over_allocated:
            slot = (last, ranked[0])

        k, team = slot
        cap = capacity[k][team.id]
        cap.allocated_points += item.points
        if over_allocated:
            cap.is_over_allocated = True
            warnings.append(
                ValidationWarning(
                    code=WarningCode.CAPACITY_OVERFLOW,
                    message=(
                        f"Item {item_id} ({item.points} pts) does not fit any team's remaining capacity; "
                        f"over-allocated to {team.id} in {iteration_id(pi, k)}."
                    ),
                    item_ids=[item_id],
                    team_id=team.id,
                    iteration_id=iteration_id(pi, k),
                    details={
                        "points": item.points,
                        "allocated_points": cap.allocated_points,
                        "available_capacity": cap.available_capacity,
                    },
                )
            )
            logger.warning(
                "planning.capacity_overflow",
                extra={"item_id": item_id, "team_id": team.id, "iteration_id": iteration_id(pi, k)},
            )

        placement[item_id] = k
        work[k].append(
            AllocatedWorkItem(
                work_item=item,
                assigned_team=team.id,
                allocated_points=float(item.points),
                dependencies=list(all_prerequisites.get(item_id, ())),
                blocked_by=hard,
                value_contribution=item.cost_of_delay,
                risk_level=risk_level_for(item, hard, over_allocated, config),
                is_over_allocated=over_allocated,
            )
        )
        logger.debug(
            "planning.allocated",
            extra={"item_id": item_id, "team_id": team.id, "iteration_id": iteration_id(pi, k)},
        )

    iterations = [
        Iteration(
            id=iteration_id(pi, k),
            name=f"Iteration {k + 1}",
            index=k,
            start_date=w.start,
            end_date=w.end,
            teams=[t.id for t in teams],
            capacity=[capacity[k][t.id] for t in teams],
            allocated_work=work[k],
        )
        for k, w in enumerate(windows)
    ]
    return iterations, placement, warnings


__all__ = ["priority_order", "risk_level_for", "iteration_id", "allocate"]
