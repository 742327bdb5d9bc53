# art_planner/services/scoring/engines/wsjf.py

from __future__ import annotations

from typing import List

from art_planner.services.scoring.interfaces import ScoringFramework, ScoreInputs, ScoreResult
from art_planner.services.scoring.utils import safe_div


class WsjfScoringEngine:
    """WSJF scoring engine.

    WSJF formula: (Business Value + Time Criticality + Risk/Opportunity) / Job Size
    - Missing value components fall back to a neutral default (midpoint of 1-5)
    - Risk/Opportunity is multiplied by inputs.risk_multiplier
    - Job Size is floored at 1
    """

    framework = ScoringFramework.WSJF

    def __init__(
        self,
        default_business_value: float = 3.0,
        default_time_criticality: float = 3.0,
        default_risk_opportunity: float = 3.0,
    ):
        self.defaults = {
            "business_value": default_business_value,
            "time_criticality": default_time_criticality,
            "risk_opportunity": default_risk_opportunity,
        }

    def compute(self, inputs: ScoreInputs) -> ScoreResult:
        warnings: List[str] = []
        defaulted: List[str] = []
        resolved = {}
        for name, fallback in self.defaults.items():
            value = getattr(inputs, name)
            if value is None:
                value = fallback
                defaulted.append(name)
                warnings.append(f"WSJF: {name} missing; using default {fallback}.")
            resolved[name] = max(0.0, float(value))

        risk = resolved["risk_opportunity"] * inputs.risk_multiplier
        job_size = max(1.0, inputs.job_size or 0.0)

        cost_of_delay = resolved["business_value"] + resolved["time_criticality"] + risk
        overall, warn = safe_div(cost_of_delay, job_size)
        if warn:
            warnings.append(f"WSJF: {warn}")

        return ScoreResult(
            value_score=cost_of_delay,
            effort_score=job_size,
            overall_score=overall,
            components={
                "business_value": resolved["business_value"],
                "time_criticality": resolved["time_criticality"],
                "risk_opportunity": resolved["risk_opportunity"],
                "effective_risk_opportunity": risk,
                "risk_multiplier": inputs.risk_multiplier,
                "job_size": job_size,
            },
            warnings=warnings,
            defaulted_fields=defaulted,
        )


__all__ = ["WsjfScoringEngine"]
