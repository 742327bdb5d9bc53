# Tests for the readiness optimizer: bottleneck pull-forward and idle-iteration filling
import pytest

from art_planner.schemas import PlanMove
from art_planner.services.dependency import DependencyAnalyzer
from art_planner.services.planning import IterationPlanner, PlanningConfig, ReadinessOptimizer, dependency_bottlenecks
from art_planner.services.value_scorer import ValueScorer


def _plan_and_graph(pi, items, teams, edges=(), config=None):
    graph = DependencyAnalyzer().analyze(items, list(edges))
    scored = ValueScorer().score(items, graph)
    return IterationPlanner(config).plan_art(pi, scored, graph, teams), graph


def _ids(iteration):
    return [a.work_item.id for a in iteration.allocated_work]


def _hub_backlog(make_scored, make_edge):
    # FILL takes all of T1's first iteration, so HUB (backend) lands in iteration 2
    items = [
        make_scored("FILL", points=10, business_value=50, labels=["backend"]),
        make_scored("HUB", points=4, labels=["backend"]),
        make_scored("X", points=1),
        make_scored("Y", points=1),
        make_scored("Z", points=1),
    ]
    edges = [make_edge(x, "HUB") for x in "XYZ"]
    return items, edges


def test_bottlenecks_counted_over_hard_dependents(pi, make_scored, make_team, make_edge):
    items, edges = _hub_backlog(make_scored, make_edge)
    teams = [make_team("T1", velocity=10), make_team("T2", velocity=10, specializations=["frontend"])]

    plan, graph = _plan_and_graph(pi, items, teams, edges)

    bottlenecks = dependency_bottlenecks(plan, graph)
    assert [(b.item_id, b.dependent_ids, b.iteration_index) for b in bottlenecks] == [("HUB", ["X", "Y", "Z"], 1)]
    assert dependency_bottlenecks(plan, graph, min_dependents=4) == []


def test_bottleneck_pulled_into_earlier_iteration_on_another_team(pi, make_scored, make_team, make_edge):
    items, edges = _hub_backlog(make_scored, make_edge)
    teams = [make_team("T1", velocity=10), make_team("T2", velocity=10, specializations=["frontend"])]
    config = PlanningConfig(max_rebalance_moves=1)
    plan, graph = _plan_and_graph(pi, items, teams, edges, config)
    assert plan.iteration_of("HUB") == 1

    result = ReadinessOptimizer(config).optimize(plan, graph)

    assert result.moves == [
        PlanMove(
            item_id="HUB",
            from_iteration=1,
            to_iteration=0,
            from_team="T1",
            to_team="T2",
            reason="Reduce dependency bottleneck (3 dependents)",
        )
    ]
    assert result.plan.iteration_of("HUB") == 0
    assert result.bottlenecks[0].iteration_index == 0
    assert result.readiness_after >= result.readiness_before
    assert result.plan.iterations[0].capacity_for("T2").allocated_points == pytest.approx(4.0)
    assert result.plan.iterations[1].capacity_for("T1").allocated_points == pytest.approx(0.0)
    # the input plan is left as it was
    assert plan.iteration_of("HUB") == 1


def test_idle_iterations_filled_with_lowest_priority_work(pi, make_scored, make_team):
    items = [make_scored(x, points=3) for x in "ABCD"]
    plan, graph = _plan_and_graph(pi, items, [make_team("T1")])
    assert {plan.iteration_of(x) for x in "ABCD"} == {0}
    assert plan.art_readiness.components["value_delivery"] == pytest.approx(0.25)

    result = ReadinessOptimizer().optimize(plan, graph)

    assert [(m.item_id, m.to_iteration) for m in result.moves] == [("D", 1), ("C", 2), ("B", 3)]
    assert [_ids(it) for it in result.plan.iterations] == [["A"], ["D"], ["C"], ["B"]]
    assert result.plan.art_readiness.components["value_delivery"] == pytest.approx(1.0)
    assert result.readiness_after > result.readiness_before
    assert result.improvement == pytest.approx(result.readiness_after - result.readiness_before, abs=1e-4)
    assert all(it.deliverable_value.can_deliver_working_software for it in result.plan.iterations)
    assert result.plan.metadata["readiness_optimization"]["readiness_after"] == result.readiness_after
    assert result.plan.summary.value_delivery_confidence == pytest.approx(1.0)


def test_moves_never_put_a_prerequisite_after_its_dependent(pi, make_scored, make_team, make_edge):
    # P is the lowest-value item but X needs it, so P cannot leave iteration 1
    items = [
        make_scored("P", points=3, business_value=0, time_criticality=0, risk_opportunity=0),
        make_scored("X", points=3),
        make_scored("B", points=3),
        make_scored("C", points=3),
    ]
    plan, graph = _plan_and_graph(pi, items, [make_team("T1")], [make_edge("X", "P")])

    result = ReadinessOptimizer().optimize(plan, graph)

    assert "P" not in [m.item_id for m in result.moves]
    assert result.plan.iteration_of("P") == 0
    assert result.plan.iteration_of("P") <= result.plan.iteration_of("X")
    assert [(m.item_id, m.to_iteration) for m in result.moves] == [("C", 1), ("B", 2), ("X", 3)]


def test_zero_move_budget_leaves_plan_unchanged(pi, make_scored, make_team):
    items = [make_scored(x, points=3) for x in "ABCD"]
    config = PlanningConfig(max_rebalance_moves=0)
    plan, graph = _plan_and_graph(pi, items, [make_team("T1")], config=config)

    result = ReadinessOptimizer(config).optimize(plan, graph)

    assert result.moves == []
    assert [_ids(it) for it in result.plan.iterations] == [_ids(it) for it in plan.iterations]
    assert result.readiness_after == result.readiness_before


def test_bottleneck_left_late_gets_a_recommendation(pi, make_scored, make_team, make_edge):
    items, edges = _hub_backlog(make_scored, make_edge)
    # a single team leaves no earlier room for HUB
    plan, graph = _plan_and_graph(pi, items, [make_team("T1", velocity=10)], edges)

    result = ReadinessOptimizer().optimize(plan, graph)

    assert result.plan.iteration_of("HUB") == 1
    assert "HUB gates 3 items from Iteration 2; schedule it earlier or split it." in (
        result.plan.art_readiness.recommendations
    )