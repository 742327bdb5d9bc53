"""Scenario Job

Plans several independent PIs or what-if variants concurrently. Every worker
gets its own deep copy of its snapshot; nothing is shared between runs.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from art_planner.config import settings
from art_planner.errors import ARTPlanningError
from art_planner.jobs.art_planning_job import run_art_planning
from art_planner.schemas.plan import ARTPlan
from art_planner.services.ingestion import PlanningSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScenarioResult:
    name: str
    plan: Optional[ARTPlan] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.plan is not None


def _run_one(name: str, snapshot: PlanningSnapshot, job_kwargs: dict) -> ScenarioResult:
    own = snapshot.model_copy(deep=True)
    try:
        plan = run_art_planning(own, **job_kwargs)
    except ARTPlanningError as exc:
        logger.exception("scenario.failed", extra={"pi_id": own.program_increment.id, "reason": name})
        return ScenarioResult(name=name, error=str(exc))
    return ScenarioResult(name=name, plan=plan)


def run_scenarios(
    scenarios: Sequence[Tuple[str, PlanningSnapshot]],
    *,
    max_workers: Optional[int] = None,
    **job_kwargs: Any,
) -> List[ScenarioResult]:
    """Run each (name, snapshot) pair through run_art_planning.

    Results come back in input order. A scenario whose inputs violate the
    contract records its error; the others still complete.
    """
    workers = max(1, int(max_workers or settings.PLANNING_MAX_WORKERS))
    logger.info("scenario.batch_start", extra={"total": len(scenarios), "count": workers})

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(_run_one, name, snap, job_kwargs) for name, snap in scenarios]
        results = [f.result() for f in futures]

    logger.info(
        "scenario.batch_done",
        extra={"total": len(results), "count": sum(1 for r in results if r.ok)},
    )
    return results


__all__ = ["ScenarioResult", "run_scenarios"]
