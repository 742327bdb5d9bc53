# Shared factories for planning tests
from __future__ import annotations

from datetime import date
from typing import Any, Callable, Optional

import pytest

from art_planner.schemas import (
    DependencyEdge,
    DependencyStrength,
    DependencyType,
    ProgramIncrement,
    ScoredItem,
    Team,
    WorkItem,
)


@pytest.fixture
def make_item() -> Callable[..., WorkItem]:
    def _make(item_id: str, points: int = 3, **kwargs: Any) -> WorkItem:
        kwargs.setdefault("title", f"Item {item_id}")
        return WorkItem(id=item_id, points=points, **kwargs)

    return _make


@pytest.fixture
def make_scored() -> Callable[..., ScoredItem]:
    def _make(
        item_id: str,
        points: int = 3,
        business_value: Optional[float] = 5.0,
        time_criticality: Optional[float] = 3.0,
        risk_opportunity: Optional[float] = 2.0,
        **kwargs: Any,
    ) -> ScoredItem:
        kwargs.setdefault("title", f"Item {item_id}")
        return ScoredItem(
            id=item_id,
            points=points,
            business_value=business_value,
            time_criticality=time_criticality,
            risk_opportunity=risk_opportunity,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_edge() -> Callable[..., DependencyEdge]:
    def _make(
        source: str,
        target: str,
        type: DependencyType = DependencyType.REQUIRES,
        strength: DependencyStrength = DependencyStrength.HARD,
        confidence: float = 1.0,
        edge_id: Optional[str] = None,
    ) -> DependencyEdge:
        return DependencyEdge(
            id=edge_id or f"{source}->{target}",
            source_id=source,
            target_id=target,
            type=type,
            strength=strength,
            confidence=confidence,
        )

    return _make


@pytest.fixture
def make_team() -> Callable[..., Team]:
    # member_count 5 + specializations + velocity >= 10 -> confidence factor 1.0
    def _make(team_id: str, velocity: float = 40.0, **kwargs: Any) -> Team:
        kwargs.setdefault("name", f"Team {team_id}")
        kwargs.setdefault("member_count", 5)
        kwargs.setdefault("specializations", ["backend"])
        return Team(id=team_id, average_velocity=velocity, **kwargs)

    return _make


@pytest.fixture
def pi() -> ProgramIncrement:
    # 2026-01-05 (Mon) .. 2026-03-01 (Sun): 56 days -> 4 x 14-day iterations
    return ProgramIncrement(id="PI-1", name="PI 2026.1", start_date=date(2026, 1, 5), end_date=date(2026, 3, 1))
