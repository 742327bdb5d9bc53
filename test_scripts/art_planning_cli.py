#!/usr/bin/env python3
"""
CLI entrypoint for ART planning over a JSON snapshot.

Usage examples:
    # Plan one PI and print the plan JSON
    uv run python -m test_scripts.art_planning_cli --snapshot snapshot.json
    # Override decomposition threshold and iteration length, write to a file
    uv run python -m test_scripts.art_planning_cli --snapshot snapshot.json --threshold 8 --iteration-days 10 --out plan.json

Flags:
    --snapshot PATH       JSON file: {"programIncrement": {...}, "items": [...], "dependencies": [...], "teams": [...]}
    --threshold N         Decomposition threshold in points (default: settings.DECOMPOSITION_THRESHOLD)
    --iteration-days N    Iteration length in days (default: settings.PLANNING_ITERATION_LENGTH_DAYS)
    --optimize            Run the readiness optimizer after allocation (default: settings.PLANNING_OPTIMIZE_READINESS)
    --out PATH            Write plan JSON here instead of stdout
    --json-logs           Emit JSON logs (python-json-logger) instead of plain text
    --log-level LEVEL     Logging level (INFO, DEBUG, etc.)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from art_planner.config import settings, setup_json_logging
from art_planner.errors import InputContractError
from art_planner.jobs.art_planning_job import run_art_planning
from art_planner.services.decomposition_engine import DecompositionConfig
from art_planner.services.ingestion import parse_snapshot
from art_planner.services.planning import PlanningConfig


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Plan an ART Program Increment from a JSON snapshot.")
    parser.add_argument("--snapshot", type=str, required=True, help="Path to the planning snapshot JSON.")
    parser.add_argument("--threshold", type=int, default=None, help="Decomposition threshold in points.")
    parser.add_argument("--iteration-days", type=int, default=None, help="Iteration length in days.")
    parser.add_argument("--optimize", action="store_true", help="Rebalance the plan for ART readiness.")
    parser.add_argument("--out", type=str, default=None, help="Write plan JSON to this path.")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON-formatted logs.")
    parser.add_argument(
        "--log-level",
        type=str,
        default=settings.LOG_LEVEL,
        help="Logging level (e.g. INFO, DEBUG).",
    )
    return parser.parse_args()


def configure_logging(level: str, json_logs: bool) -> None:
    lvl = getattr(logging, level.upper(), logging.INFO)
    if json_logs:
        setup_json_logging(lvl)
        return
    logging.basicConfig(
        level=lvl,
        format="%(asctime)s %(levelname)s %(name)s :: %(message)s",
        stream=sys.stderr,
    )


def main() -> int:
    args = parse_args()
    configure_logging(args.log_level, args.json_logs)
    logger = logging.getLogger("art_planner.cli")
    logger.info("planning.cli.start")

    try:
        with Path(args.snapshot).open("r", encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Cannot read snapshot %s: %s", args.snapshot, exc)
        return 1

    try:
        decomposition_config = DecompositionConfig.from_settings(settings)
        if args.threshold is not None:
            decomposition_config = replace(decomposition_config, threshold=args.threshold)
        planning_config = PlanningConfig.from_settings(settings)
        if args.iteration_days is not None:
            planning_config = replace(planning_config, iteration_length_days=args.iteration_days)
        if args.optimize:
            planning_config = replace(planning_config, optimize_readiness=True)
    except ValueError as exc:
        logger.error("planning.cli.invalid_config", extra={"reason": str(exc)})
        return 2

    try:
        snapshot = parse_snapshot(payload)
        plan = run_art_planning(
            snapshot,
            decomposition_config=decomposition_config,
            planning_config=planning_config,
        )
    except InputContractError as exc:
        logger.error("planning.cli.invalid_input", extra={"reason": exc.code, "warning": exc.message})
        return 2
    except KeyboardInterrupt:
        logger.warning("planning.cli.interrupted")
        return 130

    output = plan.model_dump_json(indent=2)
    if args.out:
        Path(args.out).write_text(output, encoding="utf-8")
    else:
        print(output)

    logger.info(
        "planning.cli.done",
        extra={"readiness_score": plan.art_readiness.readiness_score, "count": len(plan.validation.warnings)},
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
