# art_planner/services/dependency/graph_algorithms.py
"""
Deterministic graph primitives over string node ids.

Adjacency maps are expected to hold sorted neighbour lists; every traversal
visits nodes in the order given so identical inputs give identical outputs.
All routines are iterative, so large backlogs do not hit the recursion limit.
"""
from __future__ import annotations

import heapq
from typing import Dict, Iterable, List, Sequence, Set, Tuple


def build_adjacency(nodes: Iterable[str], arcs: Iterable[Tuple[str, str]]) -> Dict[str, List[str]]:
    """node -> sorted unique successors. Every node gets an entry."""
    succ: Dict[str, Set[str]] = {n: set() for n in nodes}
    for u, v in arcs:
        succ.setdefault(u, set()).add(v)
        succ.setdefault(v, set())
    return {n: sorted(vs) for n, vs in succ.items()}


def tarjan_scc(nodes: Sequence[str], adjacency: Dict[str, List[str]]) -> List[List[str]]:
    """Tarjan's strongly connected components, in discovery order."""
    index_of: Dict[str, int] = {}
    low: Dict[str, int] = {}
    on_stack: Set[str] = set()
    stack: List[str] = []
    components: List[List[str]] = []
    counter = 0

    for root in nodes:
        if root in index_of:
            continue
        index_of[root] = low[root] = counter
        counter += 1
        stack.append(root)
        on_stack.add(root)
        work = [(root, iter(adjacency.get(root, [])))]

        while work:
            node, successors = work[-1]
            descended = False
            for nxt in successors:
                if nxt not in index_of:
                    index_of[nxt] = low[nxt] = counter
                    counter += 1
                    stack.append(nxt)
                    on_stack.add(nxt)
                    work.append((nxt, iter(adjacency.get(nxt, []))))
                    descended = True
                    break
                if nxt in on_stack:
                    low[node] = min(low[node], index_of[nxt])
            if descended:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                low[parent] = min(low[parent], low[node])

            if low[node] == index_of[node]:
                component: List[str] = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                components.append(component)

    return components


def find_cycle(start: str, adjacency: Dict[str, List[str]], allowed: Set[str]) -> List[str]:
    """
    First cycle reachable from start, staying inside allowed.
    Returns nodes in traversal order; the closing arc runs last -> first.
    Empty list if none.
    """
    path: List[str] = [start]
    position: Dict[str, int] = {start: 0}
    visited: Set[str] = {start}
    frames = [iter([n for n in adjacency.get(start, []) if n in allowed])]

    while frames:
        nxt = next(frames[-1], None)
        if nxt is None:
            del position[path.pop()]
            frames.pop()
            continue
        if nxt in position:
            return path[position[nxt]:]
        if nxt in visited:
            continue
        visited.add(nxt)
        position[nxt] = len(path)
        path.append(nxt)
        frames.append(iter([n for n in adjacency.get(nxt, []) if n in allowed]))

    return []


def cycle_arcs(cycle: Sequence[str]) -> List[Tuple[str, str]]:
    return [(cycle[i], cycle[(i + 1) % len(cycle)]) for i in range(len(cycle))]


def _better(candidate: Tuple[int, Tuple[str, ...]], current: Tuple[int, Tuple[str, ...]]) -> bool:
    # heavier wins; equal weight -> lexicographically smaller id sequence
    if candidate[0] != current[0]:
        return candidate[0] > current[0]
    return candidate[1] < current[1]


def longest_weighted_path(arcs: Iterable[Tuple[str, str]], weights: Dict[str, int]) -> Tuple[List[str], int]:
    """
    Heaviest node-weighted path over a DAG given as (before, after) arcs.

    Only nodes touched by an arc take part and the path has at least one
    arc; with no arcs the result is ([], 0).

    Raises:
        ValueError: arcs contain a cycle.
    """
    adjacency = build_adjacency([], arcs)
    if not adjacency:
        return [], 0

    indegree: Dict[str, int] = {n: 0 for n in adjacency}
    for u in adjacency:
        for v in adjacency[u]:
            indegree[v] += 1

    best: Dict[str, Tuple[int, Tuple[str, ...]]] = {n: (weights.get(n, 0), (n,)) for n in adjacency}
    ready = [n for n in adjacency if indegree[n] == 0]
    heapq.heapify(ready)
    processed = 0

    while ready:
        u = heapq.heappop(ready)
        processed += 1
        weight_u, path_u = best[u]
        for v in adjacency[u]:
            candidate = (weight_u + weights.get(v, 0), path_u + (v,))
            if len(best[v][1]) == 1 or _better(candidate, best[v]):
                best[v] = candidate
            indegree[v] -= 1
            if indegree[v] == 0:
                heapq.heappush(ready, v)

    if processed != len(adjacency):
        raise ValueError("longest_weighted_path requires an acyclic graph")

    ends = [b for b in best.values() if len(b[1]) > 1]
    if not ends:
        return [], 0
    winner = ends[0]
    for b in ends[1:]:
        if _better(b, winner):
            winner = b
    return list(winner[1]), winner[0]


__all__ = [
    "build_adjacency",
    "tarjan_scc",
    "find_cycle",
    "cycle_arcs",
    "longest_weighted_path",
]
