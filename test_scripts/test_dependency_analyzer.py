# Tests for DependencyAnalyzer: cycles, critical path, statistics, input contract
import random

import pytest
from pydantic import ValidationError

from art_planner.errors import InputContractError
from art_planner.schemas import (
    CycleSeverity,
    DependencyEdge,
    DependencyStrength,
    DependencyType,
    DetectionMethod,
    WarningCode,
    WorkItem,
    WorkItemType,
)
from art_planner.services.dependency import DependencyAnalyzer, longest_weighted_path, tarjan_scc


def test_three_node_cycle_reported_and_weakest_edge_dropped(make_item, make_edge):
    items = [make_item("A", 3), make_item("B", 5), make_item("C", 2)]
    edges = [
        make_edge("A", "B", confidence=0.9),
        make_edge("B", "C", confidence=0.5),
        make_edge("C", "A", confidence=0.8),
    ]

    graph = DependencyAnalyzer().analyze(items, edges)

    assert graph.circular_dependencies == [["A", "B", "C"]]
    assert graph.broken_edge_ids == ["B->C"]
    assert [w.code for w in graph.warnings] == [WarningCode.CYCLE_BROKEN]
    # B requires C was dropped, so C never directly precedes B
    assert graph.critical_path == ["B", "A", "C"]
    assert graph.statistics.critical_path_points == 10


def test_soft_edge_dropped_before_lower_confidence_hard_edge(make_item, make_edge):
    items = [make_item("A"), make_item("B")]
    edges = [
        make_edge("A", "B", confidence=0.2),
        make_edge("B", "A", strength=DependencyStrength.SOFT, confidence=0.9),
    ]

    graph = DependencyAnalyzer().analyze(items, edges)

    assert graph.broken_edge_ids == ["B->A"]
    assert graph.critical_path == ["B", "A"]


def test_every_cycle_component_reported(make_item, make_edge):
    items = [make_item(x) for x in "ABCDEF"]
    edges = [
        make_edge("E", "F"),
        make_edge("F", "E"),
        make_edge("A", "B"),
        make_edge("B", "A"),
        make_edge("C", "D"),
    ]

    graph = DependencyAnalyzer().analyze(items, edges)

    assert graph.circular_dependencies == [["A", "B"], ["E", "F"]]
    assert len(graph.broken_edge_ids) == 2


def test_relates_to_edges_never_form_cycles(make_item, make_edge):
    items = [make_item("A"), make_item("B")]
    edges = [
        make_edge("A", "B", type=DependencyType.RELATES_TO),
        make_edge("B", "A", type=DependencyType.RELATES_TO),
    ]

    graph = DependencyAnalyzer().analyze(items, edges)

    assert graph.circular_dependencies == []
    assert graph.critical_path == []
    assert graph.scheduling_edges(hard_only=False) == []


def test_blocks_edge_orients_source_first(make_item, make_edge):
    items = [make_item("A", 2), make_item("B", 4)]
    graph = DependencyAnalyzer().analyze(items, [make_edge("A", "B", type=DependencyType.BLOCKS)])

    assert graph.critical_path == ["A", "B"]
    assert graph.prerequisites_of() == {"B": ["A"]}


def test_critical_path_ties_break_lexicographically(make_item, make_edge):
    items = [make_item("B", 3), make_item("A", 3), make_item("C", 2)]
    edges = [make_edge("C", "B"), make_edge("C", "A")]

    graph = DependencyAnalyzer().analyze(items, edges)

    assert graph.critical_path == ["A", "C"]


def test_critical_path_ignores_soft_edges(make_item, make_edge):
    items = [make_item("A", 8), make_item("B", 8), make_item("C", 1), make_item("D", 1)]
    edges = [
        make_edge("B", "A", strength=DependencyStrength.SOFT),
        make_edge("D", "C"),
    ]

    graph = DependencyAnalyzer().analyze(items, edges)

    assert graph.critical_path == ["C", "D"]


def test_critical_path_is_topological_over_retained_hard_edges(make_item):
    rng = random.Random(7)
    ids = [f"N{i:02d}" for i in range(40)]
    items = [make_item(i, rng.randint(0, 8)) for i in ids]
    edges = []
    for n in range(90):
        a, b = rng.sample(ids, 2)
        edges.append(
            DependencyEdge(
                id=f"e{n}",
                source_id=a,
                target_id=b,
                type=rng.choice([DependencyType.REQUIRES, DependencyType.BLOCKS]),
                strength=rng.choice([DependencyStrength.HARD, DependencyStrength.SOFT]),
                confidence=round(rng.random(), 2),
            )
        )

    graph = DependencyAnalyzer().analyze(items, edges)

    retained = {(e.prerequisite_id, e.dependent_id) for e in graph.scheduling_edges(hard_only=True)}
    for before, after in zip(graph.critical_path, graph.critical_path[1:]):
        assert (before, after) in retained

    # every reported component really is a multi-node SCC
    assert all(len(c) > 1 for c in graph.circular_dependencies)
    # retained scheduling subgraph is acyclic
    adjacency = {}
    for e in graph.scheduling_edges(hard_only=False):
        adjacency.setdefault(e.prerequisite_id, []).append(e.dependent_id)
    assert all(len(c) == 1 for c in tarjan_scc(ids, {k: sorted(v) for k, v in adjacency.items()}))


def test_analysis_is_deterministic(make_item, make_edge):
    items = [make_item(x, p) for x, p in zip("ABCDE", [3, 1, 4, 1, 5])]
    edges = [make_edge("A", "B"), make_edge("B", "C"), make_edge("C", "A"), make_edge("D", "E")]

    first = DependencyAnalyzer().analyze(items, edges)
    second = DependencyAnalyzer().analyze(items, edges)

    assert first.model_dump() == second.model_dump()


def test_structural_edges_only_for_schedulable_parents(make_item):
    items = [
        make_item("F1", 8, type=WorkItemType.FEATURE),
        make_item("S1", 3, parent_id="F1"),
        make_item("F0", 0, type=WorkItemType.FEATURE),
        make_item("S2", 2, parent_id="F0"),
        make_item("S3", 2, parent_id="EPIC-MISSING"),
    ]

    graph = DependencyAnalyzer().analyze(items, [])

    structural = [e for e in graph.edges if e.detection_method == DetectionMethod.STRUCTURAL]
    assert [e.id for e in structural] == ["structural:S1->F1"]
    assert structural[0].prerequisite_id == "F1"
    assert structural[0].is_hard and structural[0].confidence == 1.0


def test_explicit_edge_suppresses_structural_duplicate(make_item, make_edge):
    items = [make_item("F1", 8), make_item("S1", 3, parent_id="F1")]
    graph = DependencyAnalyzer().analyze(items, [make_edge("S1", "F1", strength=DependencyStrength.SOFT)])

    assert [e.id for e in graph.edges] == ["S1->F1"]


def test_children_of_split_parent_depend_on_each_part(make_item, make_edge):
    # F1 was split into F1-1 / F1-2; S1 still names F1 as its parent
    items = [
        make_item("F1-1", 5, parent_id="F1"),
        make_item("F1-2", 3, parent_id="F1"),
        make_item("S1", 2, parent_id="F1"),
        make_item("S2", 2, parent_id="F1"),
    ]
    explicit = [make_edge("S2", "F1-2", strength=DependencyStrength.SOFT)]

    graph = DependencyAnalyzer().analyze(items, explicit, decomposed={"F1": ["F1-1", "F1-2"]})

    structural = [e.id for e in graph.edges if e.detection_method == DetectionMethod.STRUCTURAL]
    assert structural == ["structural:S1->F1-1", "structural:S1->F1-2", "structural:S2->F1-1"]
    assert graph.prerequisites_of()["S1"] == ["F1-1", "F1-2"]
    assert "F1-1" not in graph.prerequisites_of()

    # without the split map the missing parent yields no structural link
    plain = DependencyAnalyzer().analyze(items, explicit)
    assert [e.id for e in plain.edges] == ["S2->F1-2"]


def test_cycle_reports_carry_severity_and_suggestions(make_item, make_edge):
    items = [make_item(x) for x in "ABCDEFGH"]
    soft = DependencyStrength.SOFT
    edges = [
        # two soft edges: info
        make_edge("A", "B", strength=soft),
        make_edge("B", "A", strength=soft),
        # four soft edges over four items: warning
        make_edge("C", "D", strength=soft),
        make_edge("D", "E", strength=soft),
        make_edge("E", "F", strength=soft),
        make_edge("F", "C", strength=soft),
        # one hard edge: critical
        make_edge("G", "H"),
        make_edge("H", "G", strength=soft, confidence=0.4),
    ]

    graph = DependencyAnalyzer().analyze(items, edges)

    assert [r.item_ids for r in graph.cycle_reports] == graph.circular_dependencies
    severities = {tuple(r.item_ids): r.severity for r in graph.cycle_reports}
    assert severities == {
        ("A", "B"): CycleSeverity.INFO,
        ("C", "D", "E", "F"): CycleSeverity.WARNING,
        ("G", "H"): CycleSeverity.CRITICAL,
    }

    report = graph.cycle_reports[1]
    assert report.edge_ids == ["C->D", "D->E", "E->F", "F->C"]
    assert "Split large work items to reduce dependency complexity" in report.suggestions
    assert report.suggestions[-1] == "Consider making soft dependencies optional: C->D, D->E, E->F, F->C"
    assert len(graph.cycle_reports[2].suggestions) == 4

    hard_cycle = next(w for w in graph.warnings if w.details["edge_id"] == "H->G")
    assert hard_cycle.details["severity"] == "critical"


def test_statistics(make_item, make_edge):
    items = [make_item(x, 2) for x in "ABCDE"]
    edges = [
        make_edge("A", "B"),
        make_edge("A", "C", strength=DependencyStrength.SOFT),
        make_edge("A", "D"),
    ]

    stats = DependencyAnalyzer().analyze(items, edges).statistics

    assert stats.node_count == 5
    assert stats.hard_dependencies == 2
    assert stats.soft_dependencies == 1
    assert stats.average_dependencies == pytest.approx(0.6)
    assert stats.independent_items == 1
    assert stats.high_dependency_items == ["A"]
    assert stats.estimated_duration == 10


def test_edge_to_unknown_item_fails_fast(make_item, make_edge):
    with pytest.raises(InputContractError) as exc:
        DependencyAnalyzer().analyze([make_item("A")], [make_edge("A", "GHOST")])
    assert exc.value.code == "EDGE_UNKNOWN_ITEM"
    assert exc.value.item_ids == ["GHOST"]


def test_duplicate_ids_fail_fast(make_item, make_edge):
    with pytest.raises(InputContractError) as exc:
        DependencyAnalyzer().analyze([make_item("A"), make_item("A")], [])
    assert exc.value.code == "DUPLICATE_ITEM_ID"

    items = [make_item("A"), make_item("B")]
    with pytest.raises(InputContractError) as exc:
        DependencyAnalyzer().analyze(items, [make_edge("A", "B", edge_id="e"), make_edge("B", "A", edge_id="e")])
    assert exc.value.code == "DUPLICATE_EDGE_ID"


def test_self_edges_rejected():
    with pytest.raises(ValidationError):
        DependencyEdge(id="loop", source_id="A", target_id="A")

    loop = DependencyEdge.model_construct(
        id="loop",
        source_id="A",
        target_id="A",
        type=DependencyType.REQUIRES,
        strength=DependencyStrength.HARD,
        confidence=1.0,
        detection_method=DetectionMethod.MANUAL,
        description=None,
    )
    with pytest.raises(InputContractError) as exc:
        DependencyAnalyzer().analyze([WorkItem(id="A")], [loop])
    assert exc.value.code == "SELF_EDGE"


def test_longest_weighted_path_rejects_cycles():
    with pytest.raises(ValueError):
        longest_weighted_path([("A", "B"), ("B", "A")], {"A": 1, "B": 1})
    assert longest_weighted_path([], {}) == ([], 0)
