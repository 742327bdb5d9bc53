# Tests for provider payload -> planning model mapping
from datetime import date

import pytest

from art_planner.errors import InputContractError
from art_planner.schemas import DependencyStrength, DependencyType, WorkItemType
from art_planner.services.ingestion import (
    edge_from_payload,
    parse_snapshot,
    program_increment_from_payload,
    team_from_payload,
    work_item_from_payload,
)


def _payload():
    return {
        "programIncrement": {"id": "PI-7", "startDate": "2026-04-06", "endDate": "2026-05-31"},
        "items": [
            {"key": "F-1", "issueType": "Feature", "summary": "Checkout", "storyPoints": 8},
            {"key": "S-1", "summary": "Card form UI", "storyPoints": 3, "parentKey": "F-1", "businessValue": 8},
        ],
        "dependencies": [{"from": "S-1", "to": "F-1", "dependencyType": "Depends_On"}],
        "teams": [{"teamId": "T1", "teamName": "Payments", "velocity": 30, "skills": "Backend, frontend"}],
    }


def test_parse_snapshot_maps_camel_case_payload():
    snapshot = parse_snapshot(_payload())

    assert snapshot.program_increment.start_date == date(2026, 4, 6)
    assert snapshot.program_increment.duration_days == 56

    feature, story = snapshot.items
    assert feature.type == WorkItemType.FEATURE
    assert story.parent_id == "F-1"
    assert story.attributes["businessValue"] == 8

    (edge,) = snapshot.edges
    assert edge.id == "S-1->F-1#0"
    assert edge.type == DependencyType.REQUIRES
    assert edge.prerequisite_id == "F-1"

    (team,) = snapshot.teams
    assert team.name == "Payments"
    assert team.specializations == ["backend", "frontend"]


def test_fractional_points_round_up_and_priority_names_map():
    item = work_item_from_payload({"id": "S-9", "points": "2.2", "priority": "High", "labels": "api, auth"})

    assert item.points == 3
    assert item.priority == 2
    assert item.labels == ["api", "auth"]


def test_edge_enum_synonyms():
    edge = edge_from_payload({"source": "A", "target": "B", "type": "relatesTo", "strength": "SOFT"})
    assert edge.type == DependencyType.RELATES_TO
    assert edge.strength == DependencyStrength.SOFT


def test_self_edge_payload_rejected():
    with pytest.raises(InputContractError) as exc:
        edge_from_payload({"id": "e1", "source": "A", "target": "A"})
    assert exc.value.code == "INVALID_DEPENDENCY_EDGE"
    assert exc.value.item_ids == ["e1"]


def test_edge_to_unknown_item_rejected():
    payload = _payload()
    payload["dependencies"].append({"from": "S-1", "to": "NOPE"})

    with pytest.raises(InputContractError) as exc:
        parse_snapshot(payload)
    assert exc.value.code == "EDGE_UNKNOWN_ITEM"
    assert exc.value.item_ids == ["NOPE"]


def test_duplicate_items_and_bad_shapes_rejected():
    payload = _payload()
    payload["items"].append({"key": "F-1", "storyPoints": 2})
    with pytest.raises(InputContractError) as exc:
        parse_snapshot(payload)
    assert exc.value.code == "DUPLICATE_ITEM_ID"

    with pytest.raises(InputContractError) as exc:
        work_item_from_payload({"id": "S-2", "points": "lots"})
    assert exc.value.code == "INVALID_WORK_ITEM"
    assert exc.value.details["errors"][0]["loc"] == "points"

    with pytest.raises(InputContractError) as exc:
        parse_snapshot(["not", "a", "mapping"])
    assert exc.value.code == "INVALID_PAYLOAD"


def test_missing_program_increment_rejected():
    payload = _payload()
    del payload["programIncrement"]
    with pytest.raises(InputContractError) as exc:
        parse_snapshot(payload)
    assert exc.value.code == "MISSING_PROGRAM_INCREMENT"


def test_program_increment_from_period_key():
    pi = program_increment_from_payload({"periodKey": "2026-q2", "objectives": ["Launch checkout"]})

    assert pi.id == "2026-Q2"
    assert pi.start_date == date(2026, 4, 1)
    assert pi.end_date == date(2026, 6, 30)
    assert pi.objectives == ["Launch checkout"]

    with pytest.raises(InputContractError):
        program_increment_from_payload({"periodKey": "2026-Q5"})


def test_team_defaults_and_invalid_velocity():
    team = team_from_payload({"id": "T2", "velocity": "25"})
    assert team.average_velocity == 25.0
    assert team.capacity_factor == 1.0

    with pytest.raises(InputContractError) as exc:
        team_from_payload({"id": "T3", "velocity": -5})
    assert exc.value.code == "INVALID_TEAM"
