# art_planner/services/dependency/analyzer.py
"""
Dependency analyzer: builds the dependency graph for one planning run.

Steps:
1) validate items and explicit edges (fail fast on broken references)
2) add structural parent -> child edges (a decomposed parent is replaced by its parts)
3) report strongly connected components as circular dependencies, with a
   severity and resolution suggestions for each
4) break cycles by dropping their weakest edge (soft before hard)
5) critical path over retained hard edges, weighted by points
6) degree statistics
"""
from __future__ import annotations

import logging
import statistics
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from art_planner.errors import InputContractError
from art_planner.schemas.dependency_graph import CycleReport, CycleSeverity, DependencyGraph, GraphStatistics
from art_planner.schemas.validation import ValidationWarning, WarningCode
from art_planner.schemas.work_item import (
    DependencyEdge,
    DependencyStrength,
    DependencyType,
    DetectionMethod,
    WorkItem,
)
from art_planner.services.dependency.graph_algorithms import (
    build_adjacency,
    cycle_arcs,
    find_cycle,
    longest_weighted_path,
    tarjan_scc,
)

logger = logging.getLogger(__name__)


def _arc(edge: DependencyEdge) -> Tuple[str, str]:
    return edge.prerequisite_id, edge.dependent_id


def cycle_severity(edges: Sequence[DependencyEdge]) -> CycleSeverity:
    if any(e.is_hard or e.type == DependencyType.BLOCKS for e in edges):
        return CycleSeverity.CRITICAL
    if len(edges) > 2:
        return CycleSeverity.WARNING
    return CycleSeverity.INFO


def resolution_suggestions(item_ids: Sequence[str], edges: Sequence[DependencyEdge]) -> List[str]:
    suggestions = [
        "Review the necessity of each dependency in the cycle",
        "Consider breaking the cycle by removing soft dependencies",
        "Reorder work items to create a linear dependency chain",
    ]
    if len(item_ids) > 3:
        suggestions.append("Split large work items to reduce dependency complexity")
    soft = [e.id for e in edges if not e.is_hard]
    if soft:
        suggestions.append(f"Consider making soft dependencies optional: {', '.join(soft)}")
    return suggestions


class DependencyAnalyzer:
    """Pure function object; holds no state between runs."""

    def analyze(
        self,
        items: Iterable[WorkItem],
        explicit_edges: Iterable[DependencyEdge],
        decomposed: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> DependencyGraph:
        """
        decomposed maps a split parent id to its child ids; items whose
        parent_id names a split parent then depend on every schedulable part.
        """
        items = list(items)
        explicit = list(explicit_edges)

        self._check_items(items)
        self._check_edges(items, explicit)

        edges = explicit + self._structural_edges(items, explicit, decomposed or {})
        node_ids = [i.id for i in items]
        scheduling = [e for e in edges if e.is_scheduling]

        circular, cycle_reports = self._circular_dependencies(node_ids, scheduling)
        broken, warnings = self._break_cycles(node_ids, scheduling)

        points = {i.id: i.points for i in items}
        hard_arcs = [_arc(e) for e in scheduling if e.is_hard and e.id not in broken]
        critical_path, critical_points = longest_weighted_path(hard_arcs, points)

        stats = self._statistics(items, edges, critical_points)

        logger.info(
            "dependency.analyze.done",
            extra={
                "count": len(edges),
                "total": len(items),
                "reason": f"cycles={len(circular)} broken={len(broken)} critical_path={len(critical_path)}",
            },
        )

        return DependencyGraph(
            nodes=items,
            edges=edges,
            critical_path=critical_path,
            circular_dependencies=circular,
            cycle_reports=cycle_reports,
            broken_edge_ids=broken,
            statistics=stats,
            warnings=warnings,
        )

    # -------------------------
    # Input contract
    # -------------------------

    def _check_items(self, items: List[WorkItem]) -> None:
        seen: Set[str] = set()
        dupes: List[str] = []
        for item in items:
            if item.id in seen and item.id not in dupes:
                dupes.append(item.id)
            seen.add(item.id)
        if dupes:
            raise InputContractError("DUPLICATE_ITEM_ID", "Work item ids must be unique.", item_ids=dupes)

    def _check_edges(self, items: List[WorkItem], edges: List[DependencyEdge]) -> None:
        known = {i.id for i in items}
        edge_ids: Set[str] = set()
        for edge in edges:
            if edge.id in edge_ids:
                raise InputContractError(
                    "DUPLICATE_EDGE_ID",
                    f"Dependency edge id {edge.id} appears more than once.",
                    details={"edge_id": edge.id},
                )
            edge_ids.add(edge.id)
            if edge.source_id == edge.target_id:
                raise InputContractError(
                    "SELF_EDGE",
                    f"Dependency edge {edge.id} points from {edge.source_id} to itself.",
                    item_ids=[edge.source_id],
                )
            missing = [x for x in (edge.source_id, edge.target_id) if x not in known]
            if missing:
                raise InputContractError(
                    "EDGE_UNKNOWN_ITEM",
                    f"Dependency edge {edge.id} references unknown work item(s): {', '.join(missing)}.",
                    item_ids=missing,
                    details={"edge_id": edge.id},
                )

    # -------------------------
    # Graph construction
    # -------------------------

    def _structural_edges(
        self,
        items: List[WorkItem],
        explicit: List[DependencyEdge],
        decomposed: Mapping[str, Sequence[str]],
    ) -> List[DependencyEdge]:
        """Child requires parent, when the parent (or each part of a split parent) is scheduled in this run."""
        schedulable = {i.id for i in items if i.points > 0}
        linked = {frozenset((e.source_id, e.target_id)) for e in explicit}
        structural: List[DependencyEdge] = []
        for item in items:
            parent = item.parent_id
            if not parent or parent == item.id:
                continue
            parts = list(decomposed.get(parent, ()))
            if item.id in parts:
                continue  # sibling parts of one split are independent
            for target in parts or [parent]:
                if target not in schedulable or frozenset((item.id, target)) in linked:
                    continue
                via = f" (part of {parent})" if parts else ""
                structural.append(
                    DependencyEdge(
                        id=f"structural:{item.id}->{target}",
                        source_id=item.id,
                        target_id=target,
                        type=DependencyType.REQUIRES,
                        strength=DependencyStrength.HARD,
                        confidence=1.0,
                        detection_method=DetectionMethod.STRUCTURAL,
                        description=f"{item.id} is scheduled no earlier than its parent {target}{via}",
                    )
                )
        return structural

    def _circular_dependencies(
        self, node_ids: List[str], scheduling: List[DependencyEdge]
    ) -> Tuple[List[List[str]], List[CycleReport]]:
        adjacency = build_adjacency(node_ids, (_arc(e) for e in scheduling))
        components = sorted(sorted(c) for c in tarjan_scc(node_ids, adjacency) if len(c) > 1)
        reports: List[CycleReport] = []
        for component in components:
            members = set(component)
            inner = sorted(
                (e for e in scheduling if e.source_id in members and e.target_id in members),
                key=lambda e: e.id,
            )
            reports.append(
                CycleReport(
                    item_ids=component,
                    edge_ids=[e.id for e in inner],
                    severity=cycle_severity(inner),
                    suggestions=resolution_suggestions(component, inner),
                )
            )
        return components, reports

    def _break_cycles(
        self, node_ids: List[str], scheduling: List[DependencyEdge]
    ) -> Tuple[List[str], List[ValidationWarning]]:
        """Drop the weakest edge of one cycle at a time until no cycle remains."""
        retained: Dict[str, DependencyEdge] = {e.id: e for e in scheduling}
        broken: List[str] = []
        warnings: List[ValidationWarning] = []

        while True:
            adjacency = build_adjacency(node_ids, (_arc(e) for e in retained.values()))
            components = [sorted(c) for c in tarjan_scc(node_ids, adjacency) if len(c) > 1]
            if not components:
                break

            component = min(components)
            cycle = find_cycle(component[0], adjacency, set(component))
            arcs = set(cycle_arcs(cycle))
            candidates = [e for e in retained.values() if _arc(e) in arcs]
            # soft before hard, then lowest confidence, then id
            victim = min(candidates, key=lambda e: (e.is_hard, e.confidence, e.id))

            del retained[victim.id]
            broken.append(victim.id)
            warnings.append(
                ValidationWarning(
                    code=WarningCode.CYCLE_BROKEN,
                    message=(
                        f"Circular dependency {' -> '.join(cycle + [cycle[0]])}; "
                        f"ignoring {victim.strength.value} edge {victim.id} for scheduling."
                    ),
                    item_ids=list(cycle),
                    details={
                        "edge_id": victim.id,
                        "confidence": victim.confidence,
                        "strength": victim.strength.value,
                        "severity": cycle_severity(candidates).value,
                    },
                )
            )
            logger.warning(
                "dependency.cycle_broken",
                extra={"item_id": victim.source_id, "reason": victim.id, "count": len(cycle)},
            )

        return broken, warnings

    # -------------------------
    # Statistics
    # -------------------------

    def _statistics(self, items: List[WorkItem], edges: List[DependencyEdge], critical_points: int) -> GraphStatistics:
        degree: Dict[str, int] = {i.id: 0 for i in items}
        for e in edges:
            degree[e.source_id] += 1
            degree[e.target_id] += 1

        node_count = len(items)
        values = list(degree.values())
        high: List[str] = []
        if values:
            cutoff = statistics.fmean(values) + statistics.pstdev(values)
            high = [i.id for i in items if degree[i.id] > cutoff]

        return GraphStatistics(
            node_count=node_count,
            edge_count=len(edges),
            hard_dependencies=sum(1 for e in edges if e.strength == DependencyStrength.HARD),
            soft_dependencies=sum(1 for e in edges if e.strength == DependencyStrength.SOFT),
            average_dependencies=(len(edges) / node_count) if node_count else 0.0,
            independent_items=sum(1 for v in values if v == 0),
            high_dependency_items=high,
            critical_path_points=critical_points,
            estimated_duration=sum(i.points for i in items),
        )


__all__ = ["DependencyAnalyzer", "cycle_severity", "resolution_suggestions"]
