# Tests for DecompositionEngine split/partition behaviour
import pytest

from art_planner.errors import DecompositionError
from art_planner.schemas import DependencyEdge, WarningCode, WorkItemType
from art_planner.services.decomposition_engine import (
    DecompositionConfig,
    DecompositionEngine,
    ListTraceabilitySink,
    partition_criteria,
    remap_edges,
    split_points,
)


def test_thirteen_points_split_into_three_children(make_item):
    engine = DecompositionEngine()
    children = engine.decompose(make_item("S1", points=13), threshold=5)

    assert [c.points for c in children] == [5, 5, 3]
    assert sum(c.points for c in children) == 13
    assert all(c.parent_id == "S1" for c in children)
    assert [c.id for c in children] == ["S1-1", "S1-2", "S1-3"]
    assert children[1].title == "Item S1 - Part 2 of 3"
    assert children[2].attributes["decomposed_from"] == "S1"
    assert children[2].attributes["sub_story_index"] == 3
    assert children[2].attributes["total_sub_stories"] == 3


@pytest.mark.parametrize("points", range(6, 26))
def test_children_sum_to_parent_and_respect_threshold(make_item, points):
    children = DecompositionEngine().decompose(make_item("S", points=points), threshold=5)

    assert 2 <= len(children) <= 5
    assert sum(c.points for c in children) == points
    assert all(1 <= c.points <= 5 for c in children)


def test_compliant_item_is_returned_unchanged(make_item):
    item = make_item("S2", points=5)
    engine = DecompositionEngine()

    assert engine.decompose(item, threshold=5) == [item]
    # re-decomposing children is a no-op
    for child in engine.decompose(make_item("S3", points=9), threshold=5):
        assert engine.decompose(child, threshold=5) == [child]


def test_criteria_remainder_goes_to_first_child(make_item):
    criteria = [f"AC{i}" for i in range(1, 8)]
    children = DecompositionEngine().decompose(
        make_item("S4", points=13, acceptance_criteria=criteria), threshold=5
    )

    assert [len(c.acceptance_criteria) for c in children] == [3, 2, 2]
    flattened = [ac for c in children for ac in c.acceptance_criteria]
    assert flattened == criteria


def test_partition_and_split_helpers():
    assert partition_criteria(["a", "b"], 3) == [["a", "b"], [], []]
    assert split_points(6, 5, 2) == [5, 1]
    assert split_points(25, 5, 5) == [5, 5, 5, 5, 5]


def test_item_too_large_for_max_children_raises(make_item):
    with pytest.raises(DecompositionError) as exc:
        DecompositionEngine().decompose(make_item("BIG", points=40), threshold=5)
    assert exc.value.item_id == "BIG"


def test_threshold_below_one_is_a_decomposition_error(make_item):
    with pytest.raises(DecompositionError) as exc:
        DecompositionEngine().decompose(make_item("S", points=3), threshold=0)
    assert exc.value.item_id == "S"
    assert "threshold" in exc.value.reason

    # one-point items never exceed a valid threshold
    one = make_item("ONE", points=1)
    assert DecompositionEngine().decompose(one, threshold=1) == [one]


@pytest.mark.parametrize(
    "kwargs",
    [{"threshold": 0}, {"min_children": 1}, {"min_children": 4, "max_children": 3}],
)
def test_config_rejects_unusable_values(kwargs):
    with pytest.raises(ValueError):
        DecompositionConfig(**kwargs)


def test_feature_children_become_stories(make_item):
    children = DecompositionEngine().decompose(
        make_item("F1", points=8, type=WorkItemType.FEATURE), threshold=5
    )
    assert {c.type for c in children} == {WorkItemType.STORY}

    enablers = DecompositionEngine().decompose(
        make_item("E1", points=8, type=WorkItemType.ENABLER), threshold=5
    )
    assert {c.type for c in enablers} == {WorkItemType.ENABLER}


def test_traceability_sink_receives_parent_and_children(make_item):
    sink = ListTraceabilitySink()
    engine = DecompositionEngine(sink=sink)
    engine.decompose(make_item("S5", points=8), threshold=5)
    engine.decompose(make_item("S6", points=2), threshold=5)

    assert len(sink.records) == 1
    assert sink.records[0].parent_id == "S5"
    assert sink.records[0].child_ids == ["S5-1", "S5-2"]


def test_decompose_all_keeps_unsplittable_items_with_warning(make_item):
    items = [make_item("A", points=3), make_item("BIG", points=40), make_item("C", points=7)]
    result = DecompositionEngine().decompose_all(items, threshold=5)

    assert [i.id for i in result.items] == ["A", "BIG", "C-1", "C-2"]
    assert len(result.warnings) == 1
    assert result.warnings[0].code == WarningCode.DECOMPOSITION_FAILED
    assert result.warnings[0].item_ids == ["BIG"]
    assert [r.parent_id for r in result.records] == ["C"]


def test_decompose_all_strict_propagates(make_item):
    engine = DecompositionEngine(DecompositionConfig(strict=True))
    with pytest.raises(DecompositionError):
        engine.decompose_all([make_item("BIG", points=40)], threshold=5)


def test_remap_edges_moves_references_onto_children(make_item, make_edge):
    result = DecompositionEngine().decompose_all([make_item("P", points=8), make_item("X", points=2)], threshold=5)
    edges = [make_edge("X", "P"), make_edge("X", "Y", edge_id="untouched")]

    remapped = remap_edges(edges, result.records)

    assert [(e.source_id, e.target_id) for e in remapped] == [("X", "P-1"), ("X", "P-2"), ("X", "Y")]
    assert remapped[0].id == "X->P:P-1"
    assert isinstance(remapped[2], DependencyEdge) and remapped[2].id == "untouched"
