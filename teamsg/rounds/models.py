from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from teamsg.sg.schemas import SGCategory, Shot


class RoundType(str, Enum):
    TOURNAMENT = "TOURNAMENT"
    QUALIFYING = "QUALIFYING"
    PRACTICE = "PRACTICE"

    @classmethod
    def _missing_(cls, value: object) -> "RoundType | None":
        if isinstance(value, str):
            lowered = value.strip().upper()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class ShotObservation(BaseModel):
    """A raw shot row as submitted by a client, before normalization."""

    hole_number: int = Field(
        validation_alias=AliasChoices("hole_number", "holeNumber", "hole")
    )
    sequence_number: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices(
            "sequence_number", "sequenceNumber", "shot_order", "shotOrder"
        ),
    )
    club: Optional[str] = None
    note: Optional[str] = None
    start_lie: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("start_lie", "startLie", "lie")
    )
    end_lie: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("end_lie", "endLie", "result_lie"),
    )
    start_dist_yards: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("start_dist_yards", "startDistYards"),
    )
    start_dist_feet: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("start_dist_feet", "startDistFeet"),
    )
    end_dist_yards: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("end_dist_yards", "endDistYards"),
    )
    end_dist_feet: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("end_dist_feet", "endDistFeet"),
    )
    is_putt: Optional[bool] = Field(
        default=None, validation_alias=AliasChoices("is_putt", "isPutt", "putt")
    )
    penalty_strokes: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("penalty_strokes", "penaltyStrokes"),
    )

    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", allow_inf_nan=False
    )


class NormalizedShots(BaseModel):
    round_id: str = Field(serialization_alias="roundId")
    shots: List[Shot]
    holes: List[int]

    model_config = ConfigDict(populate_by_name=True)


class Round(BaseModel):
    id: str
    player_id: str = Field(serialization_alias="playerId")
    player_name: Optional[str] = Field(default=None, serialization_alias="playerName")
    team_id: Optional[str] = Field(default=None, serialization_alias="teamId")
    team_name: Optional[str] = Field(default=None, serialization_alias="teamName")
    course_name: Optional[str] = Field(default=None, serialization_alias="courseName")
    round_type: RoundType = Field(serialization_alias="roundType")
    created_at: datetime = Field(serialization_alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)


class HoleScore(BaseModel):
    hole_number: int = Field(ge=1, le=18, serialization_alias="holeNumber")
    par: Optional[int] = None
    strokes: Optional[int] = None
    putts: Optional[int] = None
    penalties: Optional[int] = None
    fairway_hit: Optional[bool] = Field(
        default=None,
        serialization_alias="fairwayHit",
        validation_alias=AliasChoices("fairway_hit", "fairwayHit"),
    )
    gir: Optional[bool] = None

    model_config = ConfigDict(populate_by_name=True)


class RoundScores(BaseModel):
    round_id: str = Field(serialization_alias="roundId")
    player_id: str = Field(serialization_alias="playerId")
    holes: Dict[int, HoleScore] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True)


class RoundRow(BaseModel):
    """One reporting row per player per round, joined with its SG summary."""

    round_id: str
    created_at: Optional[datetime] = None
    round_type: Optional[RoundType] = None
    player_id: Optional[str] = None
    player_name: Optional[str] = None
    team_id: Optional[str] = None
    team_name: Optional[str] = None
    strokes: Optional[int] = None
    par_total: Optional[int] = None
    to_par: Optional[int] = None
    putts: Optional[int] = None
    fir_hits: int = 0
    fir_opps: int = 0
    gir_hits: int = 0
    gir_opps: int = 0
    holes_played: int = 0
    shot_count: int = 0
    sg_total: Optional[float] = None
    sg_ott: Optional[float] = None
    sg_app: Optional[float] = None
    sg_arg: Optional[float] = None
    sg_putt: Optional[float] = None


class HoleTotals(BaseModel):
    hole: int
    par: Optional[int] = None
    strokes: Optional[int] = None
    to_par: Optional[int] = Field(default=None, serialization_alias="toPar")
    putts: Optional[int] = None
    penalties: Optional[int] = None
    fairway_hit: Optional[bool] = Field(default=None, serialization_alias="fairwayHit")
    gir: Optional[bool] = None
    shot_count: int = Field(default=0, serialization_alias="shotCount")
    sg_total: Optional[float] = Field(default=None, serialization_alias="sgTotal")
    sg_by_cat: Optional[Dict[SGCategory, float]] = Field(
        default=None, serialization_alias="sgByCategory"
    )

    model_config = ConfigDict(populate_by_name=True)


class RoundTotals(BaseModel):
    round_id: str = Field(serialization_alias="roundId")
    player_id: str = Field(serialization_alias="playerId")
    model: str
    holes: List[HoleTotals] = Field(default_factory=list)
    holes_played: int = Field(default=0, serialization_alias="holesPlayed")
    strokes: Optional[int] = None
    par: Optional[int] = None
    to_par: Optional[int] = Field(default=None, serialization_alias="toPar")
    putts: Optional[int] = None
    penalties: Optional[int] = None
    fir_hits: int = Field(default=0, serialization_alias="firHits")
    fir_opps: int = Field(default=0, serialization_alias="firOpps")
    gir_hits: int = Field(default=0, serialization_alias="girHits")
    gir_opps: int = Field(default=0, serialization_alias="girOpps")
    sg_total: Optional[float] = Field(default=None, serialization_alias="sgTotal")
    sg_by_cat: Optional[Dict[SGCategory, float]] = Field(
        default=None, serialization_alias="sgByCategory"
    )

    model_config = ConfigDict(populate_by_name=True)


class PlayerRollingAverage(BaseModel):
    player_id: str = Field(serialization_alias="playerId")
    window: int
    rounds_played: int = Field(serialization_alias="roundsPlayed")
    rounds_with_sg: int = Field(serialization_alias="roundsWithSg")
    round_ids: List[str] = Field(default_factory=list, serialization_alias="roundIds")
    avg_to_par: Optional[float] = Field(default=None, serialization_alias="avgToPar")
    avg_sg_total: Optional[float] = Field(default=None, serialization_alias="avgSgTotal")
    avg_sg_ott: Optional[float] = Field(default=None, serialization_alias="avgSgOtt")
    avg_sg_app: Optional[float] = Field(default=None, serialization_alias="avgSgApp")
    avg_sg_arg: Optional[float] = Field(default=None, serialization_alias="avgSgArg")
    avg_sg_putt: Optional[float] = Field(default=None, serialization_alias="avgSgPutt")
    putts_per_round: Optional[float] = Field(
        default=None, serialization_alias="puttsPerRound"
    )
    fir_pct: Optional[float] = Field(default=None, serialization_alias="firPct")
    gir_pct: Optional[float] = Field(default=None, serialization_alias="girPct")

    model_config = ConfigDict(populate_by_name=True)


@dataclass
class RoundRecord:
    id: str
    player_id: str
    round_type: RoundType
    created_at: datetime
    player_name: str | None = None
    team_id: str | None = None
    team_name: str | None = None
    course_name: str | None = None

    def to_round(self) -> Round:
        return Round(
            id=self.id,
            player_id=self.player_id,
            player_name=self.player_name,
            team_id=self.team_id,
            team_name=self.team_name,
            course_name=self.course_name,
            round_type=self.round_type,
            created_at=self.created_at,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "player_id": self.player_id,
            "player_name": self.player_name,
            "team_id": self.team_id,
            "team_name": self.team_name,
            "course_name": self.course_name,
            "round_type": self.round_type.value,
            "created_at": self.created_at.isoformat(),
        }

    @staticmethod
    def from_dict(data: dict) -> "RoundRecord":
        return RoundRecord(
            id=data["id"],
            player_id=data["player_id"],
            player_name=data.get("player_name"),
            team_id=data.get("team_id"),
            team_name=data.get("team_name"),
            course_name=data.get("course_name"),
            round_type=RoundType(data["round_type"]),
            created_at=_parse_dt(data["created_at"]),
        )


def _parse_dt(value: str) -> datetime:
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


__all__ = [
    "HoleScore",
    "HoleTotals",
    "NormalizedShots",
    "PlayerRollingAverage",
    "Round",
    "RoundRecord",
    "RoundRow",
    "RoundScores",
    "RoundTotals",
    "RoundType",
    "Shot",
    "ShotObservation",
]
