# art_planner/services/planning/team_matching.py

from __future__ import annotations

import re
from typing import Dict, List, Mapping, Sequence, Set, Tuple

from art_planner.schemas.plan import IterationCapacity
from art_planner.schemas.team import Team
from art_planner.schemas.work_item import WorkItem

_TOKEN_RE = re.compile(r"[a-z0-9]+")

# attribute keys a backlog provider may use to tag an item's domain
DOMAIN_ATTRIBUTE_KEYS = ("domain", "component", "components", "area")


def item_tokens(item: WorkItem) -> Set[str]:
    parts: List[str] = [item.title, item.description, *item.labels]
    for key in DOMAIN_ATTRIBUTE_KEYS:
        value = item.attributes.get(key)
        if isinstance(value, str):
            parts.append(value)
        elif isinstance(value, (list, tuple)):
            parts.extend(str(v) for v in value)
    return set(_TOKEN_RE.findall(" ".join(parts).lower()))


def infer_domains(item: WorkItem, keyword_table: Mapping[str, Sequence[str]]) -> Set[str]:
    """Specializations whose name or keywords appear in the item text."""
    tokens = item_tokens(item)
    return {d for d, words in keyword_table.items() if d in tokens or tokens.intersection(words)}


def match_score(team: Team, domains: Set[str], tokens: Set[str]) -> int:
    # a specialization outside the keyword table can still match verbatim
    return sum(1 for s in team.specializations if s in domains or s in tokens)


def rank_teams(
    item: WorkItem,
    teams: Sequence[Team],
    capacity: Dict[str, IterationCapacity],
    keyword_table: Mapping[str, Sequence[str]],
) -> List[Team]:
    """Best specialization match first; ties go to most remaining capacity, then team id."""
    domains = infer_domains(item, keyword_table)
    tokens = item_tokens(item)

    def key(team: Team) -> Tuple[int, float, str]:
        return (-match_score(team, domains, tokens), -capacity[team.id].remaining_capacity, team.id)

    return sorted(teams, key=key)


__all__ = ["item_tokens", "infer_domains", "match_score", "rank_teams"]
