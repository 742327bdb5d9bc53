from .interfaces import (
    ScoringFramework,
    ScoreInputs,
    ScoreResult,
    ScoringEngine,
)
from .engines import WsjfScoringEngine
from .utils import safe_div, clamp, priority_for_score

__all__ = [
    "ScoringFramework",
    "ScoreInputs",
    "ScoreResult",
    "ScoringEngine",
    "WsjfScoringEngine",
    "safe_div",
    "clamp",
    "priority_for_score",
]
