from .analyzer import DependencyAnalyzer, cycle_severity, resolution_suggestions
from .graph_algorithms import (
    build_adjacency,
    tarjan_scc,
    find_cycle,
    longest_weighted_path,
)

__all__ = [
    "DependencyAnalyzer",
    "cycle_severity",
    "resolution_suggestions",
    "build_adjacency",
    "tarjan_scc",
    "find_cycle",
    "longest_weighted_path",
]
