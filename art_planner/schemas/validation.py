# art_planner/schemas/validation.py
"""
Validation warning schemas.
Non-fatal planning degeneracies are collected here and always returned with
the plan rather than raised.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class WarningCode(str, Enum):
    CYCLE_BROKEN = "CYCLE_BROKEN"
    CAPACITY_OVERFLOW = "CAPACITY_OVERFLOW"
    MISSING_ESTIMATE = "MISSING_ESTIMATE"
    DECOMPOSITION_FAILED = "DECOMPOSITION_FAILED"
    UNPLANNED_DEPENDENCY = "UNPLANNED_DEPENDENCY"
    DEPENDENCY_DEADLOCK = "DEPENDENCY_DEADLOCK"


class ValidationWarning(BaseModel):
    """A single non-fatal planning issue."""
    model_config = ConfigDict(extra="ignore")

    code: WarningCode
    message: str

    # Optional fields for structured UI feedback / debugging
    item_ids: List[str] = Field(default_factory=list)
    team_id: Optional[str] = None
    iteration_id: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class ValidationReport(BaseModel):
    """
    Warnings gathered across all planning stages.
    Consumers display the plan alongside this list for manual review.
    """
    model_config = ConfigDict(extra="ignore")

    warnings: List[ValidationWarning] = Field(default_factory=list)
    counts: Dict[str, int] = Field(default_factory=dict)
    summary: str = ""

    @classmethod
    def from_warnings(cls, warnings: List[ValidationWarning]) -> "ValidationReport":
        """Build a report from a list of warnings, tallying them by code."""
        counts: Dict[str, int] = {}
        for w in warnings:
            counts[w.code.value] = counts.get(w.code.value, 0) + 1
        summary = "clean" if not warnings else f"{len(warnings)} warnings (" + ", ".join(
            f"{code}={n}" for code, n in sorted(counts.items())
        ) + ")"
        return cls(warnings=list(warnings), counts=counts, summary=summary)

    def by_code(self, code: WarningCode) -> List[ValidationWarning]:
        return [w for w in self.warnings if w.code == code]


__all__ = ["WarningCode", "ValidationWarning", "ValidationReport"]
