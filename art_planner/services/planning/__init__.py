from .config import PlanningConfig
from .iteration_planner import IterationPlanner
from .readiness_optimizer import ReadinessOptimizer, dependency_bottlenecks
from .plan_state import PlanStage, PlanState

__all__ = [
    "PlanningConfig",
    "IterationPlanner",
    "ReadinessOptimizer",
    "dependency_bottlenecks",
    "PlanStage",
    "PlanState",
]
