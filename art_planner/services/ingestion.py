# art_planner/services/ingestion.py
"""
Boundary mapping: loose provider payloads -> strict planning models.

Backlog and capacity providers send dicts with their own key conventions
(camelCase, tracker field names). Everything is normalised and validated
here; any schema mismatch raises InputContractError so the core never sees
loosely-typed data.
"""
from __future__ import annotations

import logging
import math
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from art_planner.errors import InputContractError
from art_planner.schemas.plan import ProgramIncrement
from art_planner.schemas.team import Team
from art_planner.schemas.work_item import DependencyEdge, WorkItem

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


# model field -> accepted payload keys (first match wins)
WORK_ITEM_FIELD_ALIASES: Dict[str, List[str]] = {
    "id": ["id", "key", "issueKey", "issue_key"],
    "type": ["type", "itemType", "item_type", "issueType", "issue_type"],
    "title": ["title", "summary", "name"],
    "description": ["description", "body"],
    "points": ["points", "storyPoints", "story_points", "estimate"],
    "priority": ["priority"],
    "parent_id": ["parent_id", "parentId", "parent", "parentKey", "epicKey"],
    "acceptance_criteria": ["acceptance_criteria", "acceptanceCriteria"],
    "labels": ["labels", "tags"],
    "attributes": ["attributes", "customFields", "custom_fields"],
}

EDGE_FIELD_ALIASES: Dict[str, List[str]] = {
    "id": ["id", "edgeId", "edge_id"],
    "source_id": ["source_id", "sourceId", "source", "from"],
    "target_id": ["target_id", "targetId", "target", "to"],
    "type": ["type", "dependencyType", "dependency_type"],
    "strength": ["strength"],
    "confidence": ["confidence"],
    "detection_method": ["detection_method", "detectionMethod", "method"],
    "description": ["description"],
}

TEAM_FIELD_ALIASES: Dict[str, List[str]] = {
    "id": ["id", "teamId", "team_id", "key"],
    "name": ["name", "teamName", "team_name"],
    "member_count": ["member_count", "memberCount", "members", "size"],
    "average_velocity": ["average_velocity", "averageVelocity", "velocity"],
    "capacity_factor": ["capacity_factor", "capacityFactor"],
    "specializations": ["specializations", "skills", "domains"],
}

PI_FIELD_ALIASES: Dict[str, List[str]] = {
    "id": ["id", "piId", "pi_id", "key"],
    "name": ["name", "title"],
    "start_date": ["start_date", "startDate", "start"],
    "end_date": ["end_date", "endDate", "end"],
    "objectives": ["objectives"],
}

_ENUM_SYNONYMS: Dict[str, str] = {
    "relatesto": "relates_to",
    "relates-to": "relates_to",
    "related": "relates_to",
    "depends_on": "requires",
    "dependson": "requires",
    "blocked_by": "requires",
}


_PRIORITY_NAMES: Dict[str, int] = {
    "highest": 1,
    "critical": 1,
    "urgent": 1,
    "high": 2,
    "medium": 3,
    "low": 4,
    "lowest": 4,
}


class PlanningSnapshot(BaseModel):
    """One immutable planning input set."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    program_increment: ProgramIncrement
    items: List[WorkItem] = Field(default_factory=list)
    edges: List[DependencyEdge] = Field(default_factory=list)
    teams: List[Team] = Field(default_factory=list)


def _to_int_points(value: Any) -> Any:
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return 0
    if isinstance(value, bool):
        return value
    try:
        f = float(value)
    except (TypeError, ValueError):
        return value  # let validation reject it
    if math.isnan(f):
        return value
    # fractional estimates round up to whole points
    return int(math.ceil(f))


def _split_keys(value: Any, sep: str = ",") -> List[str]:
    if not value:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(v).strip() for v in value if str(v).strip()]
    return [part.strip() for part in str(value).split(sep) if part.strip()]


def _enum_token(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    token = value.strip()
    lowered = token.lower()
    return _ENUM_SYNONYMS.get(lowered, lowered)


def _remap(raw: Mapping[str, Any], aliases: Dict[str, List[str]]) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    for field_name, keys in aliases.items():
        for key in keys:
            if key in raw and raw[key] is not None:
                data[field_name] = raw[key]
                break
    return data


def _unmapped(raw: Mapping[str, Any], aliases: Dict[str, List[str]]) -> Dict[str, Any]:
    known = {k for keys in aliases.values() for k in keys}
    return {k: v for k, v in raw.items() if k not in known}


def _validate(model: Type[M], data: Dict[str, Any], code: str, ref: Optional[str]) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        errors = [
            {"loc": ".".join(str(p) for p in e.get("loc", ())), "msg": e.get("msg", "")}
            for e in exc.errors()
        ]
        raise InputContractError(
            code,
            f"{model.__name__} {ref or '<unknown>'} does not match the expected schema: "
            + "; ".join(f"{e['loc']}: {e['msg']}" for e in errors),
            item_ids=[ref] if ref else [],
            details={"errors": errors},
        ) from exc


def _ensure_mapping(raw: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise InputContractError("INVALID_PAYLOAD", f"Expected an object for {what}, got {type(raw).__name__}.")
    return raw


def work_item_from_payload(raw: Any) -> WorkItem:
    raw = _ensure_mapping(raw, "work item")
    data = _remap(raw, WORK_ITEM_FIELD_ALIASES)
    if "id" in data:
        data["id"] = str(data["id"]).strip()
    if "type" in data:
        data["type"] = _enum_token(data["type"])
    if "parent_id" in data:
        data["parent_id"] = str(data["parent_id"]).strip() or None
    data["points"] = _to_int_points(data.get("points"))
    if isinstance(data.get("priority"), str):
        name = data["priority"].strip().lower()
        data["priority"] = _PRIORITY_NAMES.get(name, name or None)
    if "acceptance_criteria" in data and isinstance(data["acceptance_criteria"], str):
        data["acceptance_criteria"] = _split_keys(data["acceptance_criteria"], sep="\n")
    if "labels" in data:
        data["labels"] = _split_keys(data["labels"])

    # provider-specific extras (e.g. businessValue) travel in attributes
    attributes = dict(data.get("attributes") or {})
    for k, v in _unmapped(raw, WORK_ITEM_FIELD_ALIASES).items():
        attributes.setdefault(k, v)
    data["attributes"] = attributes

    return _validate(WorkItem, data, "INVALID_WORK_ITEM", data.get("id"))


def edge_from_payload(raw: Any, index: int = 0) -> DependencyEdge:
    raw = _ensure_mapping(raw, "dependency edge")
    data = _remap(raw, EDGE_FIELD_ALIASES)
    for key in ("source_id", "target_id"):
        if key in data:
            data[key] = str(data[key]).strip()
    if "id" not in data and "source_id" in data and "target_id" in data:
        data["id"] = f"{data['source_id']}->{data['target_id']}#{index}"
    for key in ("type", "strength", "detection_method"):
        if key in data:
            data[key] = _enum_token(data[key])
    return _validate(DependencyEdge, data, "INVALID_DEPENDENCY_EDGE", data.get("id"))


def team_from_payload(raw: Any) -> Team:
    raw = _ensure_mapping(raw, "team")
    data = _remap(raw, TEAM_FIELD_ALIASES)
    if "specializations" in data:
        data["specializations"] = _split_keys(data["specializations"])
    return _validate(Team, data, "INVALID_TEAM", str(data.get("id")) if data.get("id") else None)


def program_increment_from_payload(raw: Any) -> ProgramIncrement:
    raw = _ensure_mapping(raw, "program increment")
    period_key = raw.get("period_key") or raw.get("periodKey")
    data = _remap(raw, PI_FIELD_ALIASES)
    if period_key and not ("start_date" in data and "end_date" in data):
        try:
            pi = ProgramIncrement.from_period_key(str(period_key), pi_id=data.get("id"), name=data.get("name"))
        except ValueError as exc:
            raise InputContractError("INVALID_PROGRAM_INCREMENT", str(exc)) from exc
        return pi.model_copy(update={"objectives": list(data.get("objectives") or [])})
    for key in ("start_date", "end_date"):
        if isinstance(data.get(key), str):
            try:
                data[key] = date.fromisoformat(data[key].strip()[:10])
            except ValueError as exc:
                raise InputContractError("INVALID_PROGRAM_INCREMENT", f"{key}: {exc}") from exc
    return _validate(ProgramIncrement, data, "INVALID_PROGRAM_INCREMENT", data.get("id"))


def parse_work_items(raw_items: Iterable[Any]) -> List[WorkItem]:
    items = [work_item_from_payload(r) for r in raw_items or []]
    seen = set()
    for item in items:
        if item.id in seen:
            raise InputContractError("DUPLICATE_ITEM_ID", f"Work item id {item.id} appears more than once.", item_ids=[item.id])
        seen.add(item.id)
    return items


def parse_dependency_edges(raw_edges: Iterable[Any]) -> List[DependencyEdge]:
    return [edge_from_payload(r, i) for i, r in enumerate(raw_edges or [])]


def parse_teams(raw_teams: Iterable[Any]) -> List[Team]:
    return [team_from_payload(r) for r in raw_teams or []]


def parse_snapshot(payload: Any) -> PlanningSnapshot:
    """
    Parse a full planning payload:
      {"programIncrement": {...}, "items": [...], "dependencies": [...], "teams": [...]}
    """
    payload = _ensure_mapping(payload, "planning snapshot")
    pi_raw = payload.get("program_increment") or payload.get("programIncrement") or payload.get("pi")
    if pi_raw is None:
        raise InputContractError("MISSING_PROGRAM_INCREMENT", "Snapshot has no program increment.")

    items = parse_work_items(payload.get("items") or payload.get("workItems") or [])
    edges = parse_dependency_edges(payload.get("edges") or payload.get("dependencies") or [])
    teams = parse_teams(payload.get("teams") or [])

    known = {i.id for i in items}
    for edge in edges:
        missing = [x for x in (edge.source_id, edge.target_id) if x not in known]
        if missing:
            raise InputContractError(
                "EDGE_UNKNOWN_ITEM",
                f"Dependency edge {edge.id} references unknown work item(s): {', '.join(missing)}.",
                item_ids=missing,
                details={"edge_id": edge.id},
            )

    snapshot = PlanningSnapshot(
        program_increment=program_increment_from_payload(pi_raw),
        items=items,
        edges=edges,
        teams=teams,
    )
    logger.info(
        "ingestion.snapshot_parsed",
        extra={"pi_id": snapshot.program_increment.id, "count": len(items), "total": len(edges)},
    )
    return snapshot


__all__ = [
    "PlanningSnapshot",
    "WORK_ITEM_FIELD_ALIASES",
    "EDGE_FIELD_ALIASES",
    "TEAM_FIELD_ALIASES",
    "PI_FIELD_ALIASES",
    "work_item_from_payload",
    "edge_from_payload",
    "team_from_payload",
    "program_increment_from_payload",
    "parse_work_items",
    "parse_dependency_edges",
    "parse_teams",
    "parse_snapshot",
]
