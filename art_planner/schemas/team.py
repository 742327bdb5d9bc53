# art_planner/schemas/team.py

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Team(BaseModel):
    """Capacity provider view of one agile team on the train."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(min_length=1)
    name: str = ""
    member_count: int = Field(default=1, ge=0)
    average_velocity: float = Field(default=0.0, ge=0)  # points per full-length iteration
    capacity_factor: float = Field(default=1.0, gt=0, le=1)
    specializations: List[str] = Field(default_factory=list)

    @field_validator("specializations")
    @classmethod
    def normalize_specializations(cls, v: List[str]) -> List[str]:
        # set semantics, stable order
        seen: List[str] = []
        for s in v:
            token = str(s).strip().lower()
            if token and token not in seen:
                seen.append(token)
        return seen


__all__ = ["Team"]
