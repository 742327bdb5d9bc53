"""ART Planning Job

Runs one planning pass over an immutable snapshot:
decomposition -> dependency analysis -> WSJF scoring -> iteration planning
(-> readiness optimization, when enabled).
CLI and scenario runners call this instead of wiring the services directly.
"""
from __future__ import annotations

import logging
from typing import Optional

from art_planner.config import settings
from art_planner.schemas.plan import ARTPlan
from art_planner.schemas.validation import ValidationReport
from art_planner.services.decomposition_engine import (
    DecompositionConfig,
    DecompositionEngine,
    TraceabilitySink,
    remap_edges,
)
from art_planner.services.dependency import DependencyAnalyzer
from art_planner.services.ingestion import PlanningSnapshot
from art_planner.services.planning import IterationPlanner, PlanningConfig, ReadinessOptimizer
from art_planner.services.value_scorer import ScoringConfig, ValueScorer, value_recommendations

logger = logging.getLogger(__name__)


def run_art_planning(
    snapshot: PlanningSnapshot,
    *,
    decomposition_config: Optional[DecompositionConfig] = None,
    scoring_config: Optional[ScoringConfig] = None,
    planning_config: Optional[PlanningConfig] = None,
    traceability_sink: Optional[TraceabilitySink] = None,
) -> ARTPlan:
    """Plan one Program Increment.

    Args:
        snapshot: parsed planning inputs (see services.ingestion.parse_snapshot)
        decomposition_config / scoring_config / planning_config: overrides
            (None -> built from settings)
        traceability_sink: receives one record per decomposed item

    Returns:
        ARTPlan whose validation report carries every warning from all stages.

    Raises:
        InputContractError: malformed snapshot; the run is aborted.
        DecompositionError: only when decomposition is configured strict.
    """
    decomposition_config = decomposition_config or DecompositionConfig.from_settings(settings)
    scoring_config = scoring_config or ScoringConfig.from_settings(settings)
    planning_config = planning_config or PlanningConfig.from_settings(settings)
    pi = snapshot.program_increment

    logger.info(
        "art_planning.start",
        extra={"pi_id": pi.id, "count": len(snapshot.items), "total": len(snapshot.teams)},
    )

    # Step 1: split oversized items; edges to a split parent move to its children
    engine = DecompositionEngine(decomposition_config, sink=traceability_sink)
    decomposed = engine.decompose_all(snapshot.items)
    edges = remap_edges(snapshot.edges, decomposed.records)
    logger.info("art_planning.stage", extra={"pi_id": pi.id, "stage": "decomposed", "count": len(decomposed.items)})

    # Step 2: dependency graph over the decomposed set; children of a split
    # parent keep their structural link through its parts
    split_parents = {r.parent_id: r.child_ids for r in decomposed.records}
    graph = DependencyAnalyzer().analyze(decomposed.items, edges, decomposed=split_parents)
    logger.info("art_planning.stage", extra={"pi_id": pi.id, "stage": "analyzed", "count": len(graph.edges)})

    # Step 3: WSJF ranking (critical path informs risk)
    scored, scoring_warnings = ValueScorer(scoring_config).score_with_warnings(graph.nodes, graph)
    logger.info("art_planning.stage", extra={"pi_id": pi.id, "stage": "scored", "count": len(scored)})

    # Step 4: allocation + validation
    plan = IterationPlanner(planning_config).plan_art(pi, scored, graph, snapshot.teams)

    # Step 5 (optional): move work to fill idle iterations and unblock bottlenecks
    if planning_config.optimize_readiness:
        plan = ReadinessOptimizer(planning_config).optimize(plan, graph).plan

    warnings = list(decomposed.warnings) + list(scoring_warnings) + list(plan.validation.warnings)
    metadata = dict(plan.metadata)
    metadata["traceability"] = [r.model_dump() for r in decomposed.records]

    plan = plan.model_copy(
        update={
            "validation": ValidationReport.from_warnings(warnings),
            "value_recommendations": value_recommendations(scored),
            "metadata": metadata,
        }
    )

    logger.info(
        "art_planning.done",
        extra={
            "pi_id": pi.id,
            "readiness_score": plan.art_readiness.readiness_score,
            "count": len(warnings),
        },
    )
    return plan


__all__ = ["run_art_planning"]
