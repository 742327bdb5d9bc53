# art_planner/errors.py
"""
Exceptions raised by the planning core.

Non-fatal degeneracies (broken cycles, capacity overflow, missing estimates)
are NOT exceptions: they are collected as ValidationWarning entries
(see art_planner/schemas/validation.py) and surfaced with the plan.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional


class ARTPlanningError(Exception):
    """Base class for planning core errors."""


class InputContractError(ARTPlanningError):
    """Malformed input from an upstream provider. Aborts the whole run."""

    def __init__(
        self,
        code: str,
        message: str,
        item_ids: Optional[List[str]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.item_ids = list(item_ids or [])
        self.details = dict(details or {})
        super().__init__(f"[{code}] {message}")


class DecompositionError(ARTPlanningError):
    """An item cannot be split below the threshold."""

    def __init__(self, item_id: str, reason: str):
        self.item_id = item_id
        self.reason = reason
        super().__init__(f"Cannot decompose {item_id}: {reason}")


class PlanStateError(ARTPlanningError):
    """Raised when attempting an invalid plan-construction transition."""

    def __init__(self, from_stage: str, to_stage: str):
        self.from_stage = from_stage
        self.to_stage = to_stage
        super().__init__(f"Invalid plan transition: {from_stage} -> {to_stage}")


__all__ = [
    "ARTPlanningError",
    "InputContractError",
    "DecompositionError",
    "PlanStateError",
]
