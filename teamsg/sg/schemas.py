"""Pydantic models and enumerations for strokes-gained shots and results."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Lie(str, Enum):
    TEE = "Tee"
    FAIRWAY = "Fairway"
    ROUGH = "Rough"
    SAND = "Sand"
    RECOVERY = "Recovery"
    GREEN = "Green"
    HOLE = "Hole"
    PENALTY = "Penalty"
    OTHER = "Other"


# Distances for these lies are recorded in feet, every other lie in yards.
FEET_LIES = frozenset({Lie.GREEN, Lie.HOLE})

# Lies with a dedicated off-green expectation curve.
OFF_GREEN_LIES = (Lie.TEE, Lie.FAIRWAY, Lie.ROUGH, Lie.SAND, Lie.RECOVERY)


class CurveKind(str, Enum):
    PUTTING = "putting"
    OFF_GREEN = "off_green"


class SGCategory(str, Enum):
    OFF_THE_TEE = "ott"
    APPROACH = "app"
    AROUND_GREEN = "arg"
    PUTTING = "putt"


def empty_category_totals() -> Dict[SGCategory, float]:
    return {category: 0.0 for category in SGCategory}


class CurvePoint(BaseModel):
    distance: float = Field(
        ge=0, validation_alias=AliasChoices("distance", "dist_ft", "dist_yd")
    )
    expected_strokes: float = Field(
        gt=0, validation_alias=AliasChoices("expected_strokes", "exp_strokes")
    )

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Shot(BaseModel):
    """A validated shot. Distances are feet on the green, yards elsewhere."""

    round_id: str = Field(serialization_alias="roundId")
    hole_number: int = Field(ge=1, le=18, serialization_alias="holeNumber")
    sequence_number: int = Field(ge=1, serialization_alias="sequenceNumber")
    club: Optional[str] = None
    note: Optional[str] = None
    start_lie: Lie = Field(serialization_alias="startLie")
    start_distance: float = Field(ge=0, serialization_alias="startDistance")
    end_lie: Lie = Field(serialization_alias="endLie")
    end_distance: float = Field(ge=0, serialization_alias="endDistance")
    is_putt: bool = Field(default=False, serialization_alias="isPutt")
    penalty_strokes: int = Field(default=0, ge=0, serialization_alias="penaltyStrokes")
    penalty: bool = False

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ShotSG(BaseModel):
    """Per-shot strokes-gained value."""

    hole: int
    shot: int
    category: SGCategory
    expected_start: float = Field(serialization_alias="expectedStart")
    expected_end: float = Field(serialization_alias="expectedEnd")
    penalty_strokes: int = Field(default=0, serialization_alias="penaltyStrokes")
    sg_value: float = Field(serialization_alias="sgValue")

    model_config = ConfigDict(populate_by_name=True)


class HoleSG(BaseModel):
    """Aggregated strokes-gained over a hole."""

    hole: int
    sg_total: float = Field(serialization_alias="sgTotal")
    sg_by_cat: Dict[SGCategory, float] = Field(
        default_factory=empty_category_totals, serialization_alias="sgByCategory"
    )
    shots: List[ShotSG] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class RoundSG(BaseModel):
    round_id: str = Field(serialization_alias="roundId")
    model: str
    sg_total: float = Field(serialization_alias="sgTotal")
    sg_by_cat: Dict[SGCategory, float] = Field(
        default_factory=empty_category_totals, serialization_alias="sgByCategory"
    )
    holes: List[HoleSG] = Field(default_factory=list)
    shots: List[ShotSG] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


__all__ = [
    "CurveKind",
    "CurvePoint",
    "FEET_LIES",
    "HoleSG",
    "Lie",
    "OFF_GREEN_LIES",
    "RoundSG",
    "SGCategory",
    "Shot",
    "ShotSG",
    "empty_category_totals",
]
