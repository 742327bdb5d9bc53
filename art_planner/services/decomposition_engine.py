# art_planner/services/decomposition_engine.py
"""
Decomposition engine: splits oversized work items into implementable children.

Children carry the parent's points (the last child absorbs the remainder) and
a partition of its acceptance criteria. Each split is reported to an optional
traceability sink; the engine never talks to the backlog store.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Protocol

from art_planner.errors import DecompositionError
from art_planner.schemas.decomposition import DecompositionResult, TraceabilityRecord
from art_planner.schemas.validation import ValidationWarning, WarningCode
from art_planner.schemas.work_item import DependencyEdge, WorkItem, WorkItemType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecompositionConfig:
    threshold: int = 5
    min_children: int = 2
    max_children: int = 5
    strict: bool = False  # re-raise DecompositionError from decompose_all

    def __post_init__(self) -> None:
        if self.threshold < 1:
            raise ValueError("threshold must be >= 1")
        if self.min_children < 2:
            raise ValueError("min_children must be >= 2")
        if self.max_children < self.min_children:
            raise ValueError("max_children must be >= min_children")

    @classmethod
    def from_settings(cls, settings) -> "DecompositionConfig":
        return cls(
            threshold=settings.DECOMPOSITION_THRESHOLD,
            min_children=settings.DECOMPOSITION_MIN_CHILDREN,
            max_children=settings.DECOMPOSITION_MAX_CHILDREN,
            strict=settings.DECOMPOSITION_STRICT,
        )


class TraceabilitySink(Protocol):
    """Receives parent -> children records for audit trails."""

    def record(self, record: TraceabilityRecord) -> None:  # pragma: no cover - interface only
        ...


class ListTraceabilitySink:
    """In-memory sink; useful for callers that export records after the run."""

    def __init__(self) -> None:
        self.records: List[TraceabilityRecord] = []

    def record(self, record: TraceabilityRecord) -> None:
        self.records.append(record)


def split_points(points: int, threshold: int, count: int) -> List[int]:
    """Fill each child up to threshold; the last child takes what is left."""
    shares: List[int] = []
    remaining = points
    for _ in range(count - 1):
        share = min(threshold, remaining - 1)  # leave at least 1 for the last child
        shares.append(share)
        remaining -= share
    shares.append(remaining)
    return shares


def partition_criteria(criteria: List[str], count: int) -> List[List[str]]:
    """Even split by count; the remainder goes to the first child."""
    base, extra = divmod(len(criteria), count)
    parts: List[List[str]] = []
    pos = 0
    for i in range(count):
        size = base + (extra if i == 0 else 0)
        parts.append(list(criteria[pos:pos + size]))
        pos += size
    return parts


def _trace(parent: WorkItem, children: List[WorkItem], threshold: int) -> TraceabilityRecord:
    return TraceabilityRecord(
        parent_id=parent.id,
        child_ids=[c.id for c in children],
        threshold=threshold,
        parent_points=parent.points,
    )


class DecompositionEngine:
    def __init__(self, config: Optional[DecompositionConfig] = None, sink: Optional[TraceabilitySink] = None):
        self.config = config or DecompositionConfig()
        self.sink = sink

    def decompose(self, item: WorkItem, threshold: Optional[int] = None) -> List[WorkItem]:
        """
        Split item into children whose points are each <= threshold.

        Returns [item] unchanged when it already fits.

        Raises:
            DecompositionError: threshold is below 1, or the item would need
                more than max_children children to get under the threshold.
        """
        threshold = self.config.threshold if threshold is None else threshold
        if threshold < 1:
            raise DecompositionError(item.id, f"threshold must be >= 1, got {threshold}")

        if item.points <= threshold:
            return [item]
        # points > threshold >= 1, so at least two children always fit

        count = max(self.config.min_children, math.ceil(item.points / threshold))
        if count > self.config.max_children:
            raise DecompositionError(
                item.id,
                f"{item.points} points need {count} children of <= {threshold}; max is {self.config.max_children}",
            )

        shares = split_points(item.points, threshold, count)
        criteria = partition_criteria(item.acceptance_criteria, count)
        child_type = item.type if item.type in (WorkItemType.STORY, WorkItemType.ENABLER) else WorkItemType.STORY

        children: List[WorkItem] = []
        for i in range(count):
            attributes = dict(item.attributes)
            attributes.update(
                {
                    "decomposed_from": item.id,
                    "sub_story_index": i + 1,
                    "total_sub_stories": count,
                }
            )
            children.append(
                WorkItem(
                    id=f"{item.id}-{i + 1}",
                    type=child_type,
                    title=f"{item.title} - Part {i + 1} of {count}",
                    description=item.description,
                    points=shares[i],
                    priority=item.priority,
                    parent_id=item.id,
                    acceptance_criteria=criteria[i],
                    labels=list(item.labels),
                    attributes=attributes,
                )
            )

        if self.sink is not None:
            self.sink.record(_trace(item, children, threshold))

        logger.debug(
            "decomposition.split",
            extra={"item_id": item.id, "count": count, "total": item.points},
        )
        return children

    def decompose_all(self, items: Iterable[WorkItem], threshold: Optional[int] = None) -> DecompositionResult:
        """
        Decompose a backlog snapshot, preserving input order.

        Items that cannot be split are kept as-is with a DECOMPOSITION_FAILED
        warning unless the engine is configured as strict.
        """
        threshold = self.config.threshold if threshold is None else threshold
        result = DecompositionResult()

        for item in items:
            try:
                children = self.decompose(item, threshold)
            except DecompositionError as exc:
                if self.config.strict:
                    raise
                logger.warning(
                    "decomposition.failed",
                    extra={"item_id": item.id, "reason": exc.reason},
                )
                result.items.append(item)
                result.warnings.append(
                    ValidationWarning(
                        code=WarningCode.DECOMPOSITION_FAILED,
                        message=f"Item {item.id} kept oversized: {exc.reason}",
                        item_ids=[item.id],
                        details={"points": item.points, "threshold": threshold},
                    )
                )
                continue

            result.items.extend(children)
            if len(children) > 1:
                result.records.append(_trace(item, children, threshold))

        logger.info(
            "decomposition.done",
            extra={"count": len(result.records), "total": len(result.items)},
        )
        return result


def remap_edges(edges: Iterable[DependencyEdge], records: Iterable[TraceabilityRecord]) -> List[DependencyEdge]:
    """
    Rewrite explicit edges that touch a decomposed parent onto its children.

    An edge A -> P becomes A -> P-1 ... A -> P-n (ids suffixed with the child
    id); an edge between two decomposed parents fans out to every pair.
    """
    children_of: Dict[str, List[str]] = {r.parent_id: list(r.child_ids) for r in records}
    if not children_of:
        return list(edges)

    remapped: List[DependencyEdge] = []
    for edge in edges:
        sources = children_of.get(edge.source_id, [edge.source_id])
        targets = children_of.get(edge.target_id, [edge.target_id])
        if len(sources) == 1 and len(targets) == 1 and sources[0] == edge.source_id and targets[0] == edge.target_id:
            remapped.append(edge)
            continue
        for s in sources:
            for t in targets:
                if s == t:
                    continue
                suffix = "|".join(x for x in (s, t) if x not in (edge.source_id, edge.target_id))
                remapped.append(
                    edge.model_copy(update={"id": f"{edge.id}:{suffix}", "source_id": s, "target_id": t})
                )
    return remapped


__all__ = [
    "DecompositionConfig",
    "TraceabilitySink",
    "ListTraceabilitySink",
    "DecompositionEngine",
    "split_points",
    "partition_criteria",
    "remap_edges",
]
