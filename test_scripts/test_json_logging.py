"""Checks for the JSON logging setup used by the planning pipeline."""

import json
import logging

from art_planner.config import CustomJsonFormatter, setup_json_logging


def _record(msg: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("art_planner.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_none_fields_are_dropped():
    formatter = CustomJsonFormatter("%(levelname)s %(name)s %(message)s %(pi_id)s %(item_id)s %(wsjf_score)s")

    payload = json.loads(formatter.format(_record("scoring.computed", item_id="S-1", wsjf_score=4.5)))

    assert payload["message"] == "scoring.computed"
    assert payload["item_id"] == "S-1"
    assert payload["wsjf_score"] == 4.5
    assert "pi_id" not in payload


def test_setup_json_logging_emits_one_json_line(capsys):
    setup_json_logging(logging.DEBUG)
    logger = logging.getLogger("art_planner.test")
    try:
        logger.info("planning.done", extra={"pi_id": "PI-1", "readiness_score": 0.82})
    finally:
        art_logger = logging.getLogger("art_planner")
        art_logger.handlers = []
        art_logger.propagate = True

    lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
    assert len(lines) == 1
    payload = json.loads(lines[0])
    assert payload["levelname"] == "INFO"
    assert payload["pi_id"] == "PI-1"
    assert payload["readiness_score"] == 0.82
    assert "team_id" not in payload
