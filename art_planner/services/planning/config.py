# art_planner/services/planning/config.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Tuple

from art_planner.config import DEFAULT_DOMAIN_KEYWORDS


KeywordTable = Tuple[Tuple[str, Tuple[str, ...]], ...]


def freeze_keywords(table: Mapping[str, object]) -> KeywordTable:
    """specialization -> words, as a sorted tuple of pairs."""
    return tuple(
        sorted((str(k).lower(), tuple(str(w).lower() for w in (v or ()))) for k, v in table.items())
    )


@dataclass(frozen=True)
class PlanningConfig:
    """Immutable knobs for one planner instance.

    domain_keywords maps a team specialization to the words that signal it
    in an item's title, description, labels or domain attributes.
    """
    iteration_length_days: int = 14
    target_utilization: float = 0.85
    ready_threshold: float = 0.8
    weight_dependencies: float = 0.4
    weight_capacity: float = 0.3
    weight_value: float = 0.3
    max_story_points: int = 5  # items above this are flagged medium risk
    optimize_readiness: bool = False
    max_rebalance_moves: int = 10
    bottleneck_min_dependents: int = 3  # hard dependents that make an item a bottleneck
    domain_keywords: KeywordTable = field(default_factory=lambda: freeze_keywords(DEFAULT_DOMAIN_KEYWORDS))

    def __post_init__(self) -> None:
        if self.iteration_length_days < 1:
            raise ValueError("iteration_length_days must be >= 1")
        if not 0 < self.target_utilization <= 1:
            raise ValueError("target_utilization must be in (0, 1]")
        if min(self.weight_dependencies, self.weight_capacity, self.weight_value) < 0:
            raise ValueError("readiness weights must be non-negative")
        if self.weight_dependencies + self.weight_capacity + self.weight_value <= 0:
            raise ValueError("readiness weights must not all be zero")
        if self.max_rebalance_moves < 0:
            raise ValueError("max_rebalance_moves must be >= 0")
        if self.bottleneck_min_dependents < 1:
            raise ValueError("bottleneck_min_dependents must be >= 1")
        if isinstance(self.domain_keywords, Mapping):
            object.__setattr__(self, "domain_keywords", freeze_keywords(self.domain_keywords))

    def keyword_table(self) -> Dict[str, Tuple[str, ...]]:
        return dict(self.domain_keywords)

    @classmethod
    def from_settings(cls, settings) -> "PlanningConfig":
        return cls(
            iteration_length_days=settings.PLANNING_ITERATION_LENGTH_DAYS,
            target_utilization=settings.PLANNING_TARGET_UTILIZATION,
            ready_threshold=settings.PLANNING_READY_THRESHOLD,
            weight_dependencies=settings.PLANNING_READINESS_WEIGHT_DEPENDENCIES,
            weight_capacity=settings.PLANNING_READINESS_WEIGHT_CAPACITY,
            weight_value=settings.PLANNING_READINESS_WEIGHT_VALUE,
            max_story_points=settings.DECOMPOSITION_THRESHOLD,
            optimize_readiness=settings.PLANNING_OPTIMIZE_READINESS,
            max_rebalance_moves=settings.PLANNING_MAX_REBALANCE_MOVES,
            bottleneck_min_dependents=settings.PLANNING_BOTTLENECK_MIN_DEPENDENTS,
            domain_keywords=freeze_keywords(settings.PLANNING_DOMAIN_KEYWORDS),
        )


__all__ = ["KeywordTable", "freeze_keywords", "PlanningConfig"]
