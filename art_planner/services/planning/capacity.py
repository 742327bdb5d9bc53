# art_planner/services/planning/capacity.py
"""
Per-iteration team capacity.

available = total * capacity_factor * confidence_factor, where total is the
team's velocity pro-rated by iteration length and the confidence factor is a
heuristic on team shape.
"""
from __future__ import annotations

from art_planner.errors import InputContractError
from art_planner.schemas.plan import IterationCapacity
from art_planner.schemas.team import Team
from art_planner.services.scoring.utils import clamp


def estimate_confidence_factor(team: Team) -> float:
    """How much of the nominal capacity the team is likely to deliver."""
    factor = 1.0
    if team.average_velocity < 10:
        factor -= 0.1  # low or unstable velocity
    if team.member_count < 3:
        factor -= 0.15
    elif team.member_count > 10:
        factor -= 0.1  # coordination overhead
    if not team.specializations:
        factor -= 0.05
    return round(clamp(factor, 0.3, 1.0), 4)


def ensure_team_capacity(team: Team) -> None:
    if team.average_velocity * team.capacity_factor <= 0:
        raise InputContractError(
            "TEAM_ZERO_CAPACITY",
            f"Team {team.id} has zero capacity and cannot receive allocations.",
            details={"team_id": team.id, "average_velocity": team.average_velocity},
        )


def build_iteration_capacity(team: Team, iteration_days: int, iteration_length_days: int) -> IterationCapacity:
    ensure_team_capacity(team)
    duration_factor = min(1.0, iteration_days / iteration_length_days)
    total = team.average_velocity * duration_factor
    confidence = estimate_confidence_factor(team)
    return IterationCapacity(
        team_id=team.id,
        team_name=team.name,
        total_capacity=total,
        available_capacity=total * team.capacity_factor * confidence,
        confidence_factor=confidence,
    )


__all__ = ["estimate_confidence_factor", "ensure_team_capacity", "build_iteration_capacity"]
