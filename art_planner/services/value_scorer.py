# art_planner/services/value_scorer.py

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Set, Tuple, Union

from art_planner.schemas.dependency_graph import DependencyGraph
from art_planner.schemas.scoring import RecommendationType, ScoredItem, ValueRecommendation
from art_planner.schemas.validation import ValidationWarning, WarningCode
from art_planner.schemas.work_item import WorkItem
from art_planner.services.scoring import ScoreInputs, ScoringEngine, WsjfScoringEngine, priority_for_score

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoringConfig:
    critical_path_risk_multiplier: float = 1.2
    default_business_value: float = 3.0
    default_time_criticality: float = 3.0
    default_risk_opportunity: float = 3.0

    @classmethod
    def from_settings(cls, settings) -> "ScoringConfig":
        return cls(
            critical_path_risk_multiplier=settings.SCORING_CRITICAL_PATH_RISK_MULTIPLIER,
            default_business_value=settings.SCORING_DEFAULT_BUSINESS_VALUE,
            default_time_criticality=settings.SCORING_DEFAULT_TIME_CRITICALITY,
            default_risk_opportunity=settings.SCORING_DEFAULT_RISK_OPPORTUNITY,
        )


class ValueScorer:
    """Ranks work items by WSJF.

    Responsibilities:
    - Map items -> ScoreInputs (critical path items get a risk multiplier,
      reported as effective_risk_opportunity; raw estimates are kept so
      re-scoring a scored list gives the same scores)
    - Delegate to the WSJF engine
    - Return new ScoredItems sorted by score desc, id asc

    Never raises on incomplete estimates; defaults are reported as
    MISSING_ESTIMATE warnings. The graph is read only.
    """

    def __init__(self, config: Optional[ScoringConfig] = None, engine: Optional[ScoringEngine] = None):
        self.config = config or ScoringConfig()
        self.engine = engine or WsjfScoringEngine(
            default_business_value=self.config.default_business_value,
            default_time_criticality=self.config.default_time_criticality,
            default_risk_opportunity=self.config.default_risk_opportunity,
        )

    def score(self, items: Iterable[Union[ScoredItem, WorkItem]], graph: DependencyGraph) -> List[ScoredItem]:
        scored, _ = self.score_with_warnings(items, graph)
        return scored

    def score_with_warnings(
        self, items: Iterable[Union[ScoredItem, WorkItem]], graph: DependencyGraph
    ) -> Tuple[List[ScoredItem], List[ValidationWarning]]:
        critical = set(graph.critical_path)
        scored: List[ScoredItem] = []
        warnings: List[ValidationWarning] = []

        for raw in items:
            item = raw if isinstance(raw, ScoredItem) else ScoredItem.from_work_item(raw)
            on_path = item.id in critical
            inputs = ScoreInputs(
                business_value=item.business_value,
                time_criticality=item.time_criticality,
                risk_opportunity=item.risk_opportunity,
                job_size=float(max(item.points, 1)),
                risk_multiplier=self.config.critical_path_risk_multiplier if on_path else 1.0,
            )
            result = self.engine.compute(inputs)

            for warn in result.warnings:
                logger.warning("scoring.warning", extra={"item_id": item.id, "warning": warn})
            if result.defaulted_fields:
                warnings.append(
                    ValidationWarning(
                        code=WarningCode.MISSING_ESTIMATE,
                        message=f"Item {item.id} is missing {', '.join(result.defaulted_fields)}; neutral defaults applied.",
                        item_ids=[item.id],
                        details={"fields": list(result.defaulted_fields)},
                    )
                )

            wsjf = float(result.overall_score or 0.0)
            scored.append(
                item.model_copy(
                    update={
                        "business_value": result.components["business_value"],
                        "time_criticality": result.components["time_criticality"],
                        "risk_opportunity": result.components["risk_opportunity"],
                        "effective_risk_opportunity": result.components["effective_risk_opportunity"],
                        "job_size": result.components["job_size"],
                        "wsjf_score": wsjf,
                        "on_critical_path": on_path,
                        "recommended_priority": priority_for_score(wsjf),
                    }
                )
            )
            logger.debug("scoring.computed", extra={"item_id": item.id, "wsjf_score": wsjf})

        scored.sort(key=lambda s: (-s.wsjf_score, s.id))
        logger.info("scoring.done", extra={"total": len(scored), "count": len(warnings)})
        return scored, warnings


QUICK_WIN_MIN_WSJF = 6.0
QUICK_WIN_MAX_SIZE = 3.0
SPLIT_MIN_WSJF = 5.0
SPLIT_MIN_SIZE = 8.0
DELAY_MAX_WSJF = 2.0
DELAY_MIN_SIZE = 5.0
COMBINE_MAX_SIZE = 2.0
COMBINE_MIN_SIMILARITY = 0.7


def title_keywords(title: str) -> Set[str]:
    """Lowercased words longer than three letters, punctuation stripped."""
    cleaned = re.sub(r"[^\w\s]", "", title.lower())
    return {w for w in cleaned.split() if len(w) > 3}


def keyword_similarity(a: Set[str], b: Set[str]) -> float:
    union = a | b
    return len(a & b) / len(union) if union else 0.0


def _split_siblings(a: ScoredItem, b: ScoredItem) -> bool:
    parent = a.attributes.get("decomposed_from")
    return parent is not None and parent == b.attributes.get("decomposed_from")


def similar_small_groups(scored: Sequence[ScoredItem]) -> List[List[str]]:
    """Greedy groups of small items whose titles share most keywords."""
    small = [s for s in scored if s.job_size <= COMBINE_MAX_SIZE]
    keywords = {s.id: title_keywords(s.title) for s in small}
    used: Set[str] = set()
    groups: List[List[str]] = []
    for i, anchor in enumerate(small):
        if anchor.id in used or not keywords[anchor.id]:
            continue
        group = [anchor.id]
        for other in small[i + 1:]:
            if other.id in used:
                continue
            if _split_siblings(anchor, other):
                continue
            if keyword_similarity(keywords[anchor.id], keywords[other.id]) >= COMBINE_MIN_SIMILARITY:
                group.append(other.id)
        if len(group) > 1:
            used.update(group)
            groups.append(group)
    return groups


def value_recommendations(scored: Sequence[ScoredItem]) -> List[ValueRecommendation]:
    """
    Value-delivery suggestions over a scored backlog (input order kept):
    quick wins, large high-value items to split, low-value large items to
    delay, and batches of similar small stories.
    """
    recs: List[ValueRecommendation] = []
    for s in scored:
        if s.wsjf_score > QUICK_WIN_MIN_WSJF and s.job_size <= QUICK_WIN_MAX_SIZE:
            recs.append(
                ValueRecommendation(
                    recommendation_type=RecommendationType.PRIORITIZE,
                    item_ids=[s.id],
                    rationale=f"Quick win: WSJF {s.wsjf_score:.1f} for job size {s.job_size:g}.",
                    expected_impact="Early value delivery at low cost",
                    confidence=0.9,
                )
            )
        elif s.wsjf_score > SPLIT_MIN_WSJF and s.job_size > SPLIT_MIN_SIZE:
            recs.append(
                ValueRecommendation(
                    recommendation_type=RecommendationType.SPLIT,
                    item_ids=[s.id],
                    rationale=f"High value (WSJF {s.wsjf_score:.1f}) held back by job size {s.job_size:g}.",
                    expected_impact="Deliver part of the value sooner",
                    confidence=0.7,
                )
            )
        elif s.wsjf_score < DELAY_MAX_WSJF and s.job_size > DELAY_MIN_SIZE:
            recs.append(
                ValueRecommendation(
                    recommendation_type=RecommendationType.DELAY,
                    item_ids=[s.id],
                    rationale=f"Low value (WSJF {s.wsjf_score:.1f}) for job size {s.job_size:g}.",
                    expected_impact="Frees capacity for higher-value work",
                    confidence=0.6,
                )
            )

    for group in similar_small_groups(scored):
        recs.append(
            ValueRecommendation(
                recommendation_type=RecommendationType.COMBINE,
                item_ids=group,
                rationale=f"{len(group)} similar small stories could be delivered as one batch.",
                expected_impact="Less context switching and hand-off overhead",
                confidence=0.5,
            )
        )
    return recs


__all__ = [
    "ScoringConfig",
    "ValueScorer",
    "title_keywords",
    "keyword_similarity",
    "similar_small_groups",
    "value_recommendations",
]
