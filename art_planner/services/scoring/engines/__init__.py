# art_planner/services/scoring/engines/__init__.py

from .wsjf import WsjfScoringEngine

__all__ = ["WsjfScoringEngine"]
