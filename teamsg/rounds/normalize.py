"""Validation and normalization of raw shot observations.

This is the single choke point between client-shaped rows and the strict
``Shot`` record: lies are mapped onto the canonical enumeration, distance
units are checked against the lie, sequence numbers are filled in and the
set of touched holes is collected. Any violation raises
``teamsg.errors.ValidationError`` before anything is written.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Union

from pydantic import ValidationError as PydanticValidationError

from teamsg.errors import ValidationError
from teamsg.sg.schemas import FEET_LIES, Lie, Shot

from .models import NormalizedShots, ShotObservation

RawObservation = Union[ShotObservation, Mapping[str, Any]]

_LIE_LOOKUP: Dict[str, Lie] = {lie.value.lower(): lie for lie in Lie}
_LIE_LOOKUP["holed"] = Lie.HOLE
_LIE_SEPARATORS = re.compile(r"[\s_-]+")

_HOLE_KEYS = ("hole_number", "holeNumber", "hole")


def parse_lie(raw: Optional[str], *, hole: int, field: str, allow_hole: bool) -> Lie:
    """Map a lie string onto ``Lie``; unknown values are rejected."""

    if raw is None or not str(raw).strip():
        raise ValidationError("lie is required", hole=hole, field=field)
    key = _LIE_SEPARATORS.sub("", str(raw)).lower()
    lie = _LIE_LOOKUP.get(key)
    if lie is None:
        raise ValidationError(f"unrecognized lie {raw!r}", hole=hole, field=field)
    if lie is Lie.HOLE and not allow_hole:
        raise ValidationError("a shot cannot start in the hole", hole=hole, field=field)
    return lie


def _resolve_distance(
    lie: Lie,
    *,
    yards: Optional[float],
    feet: Optional[float],
    hole: int,
    prefix: str,
) -> float:
    if lie in FEET_LIES:
        wanted, wanted_field = feet, f"{prefix}_dist_feet"
        other, other_field, unit = yards, f"{prefix}_dist_yards", "feet"
    else:
        wanted, wanted_field = yards, f"{prefix}_dist_yards"
        other, other_field, unit = feet, f"{prefix}_dist_feet", "yards"

    if other is not None:
        raise ValidationError(
            f"{lie.value} distances are recorded in {unit}", hole=hole, field=other_field
        )
    if wanted is None:
        raise ValidationError(
            f"a {unit} distance is required for {lie.value}",
            hole=hole,
            field=wanted_field,
        )
    if wanted < 0:
        raise ValidationError("distance must not be negative", hole=hole, field=wanted_field)
    return float(wanted)


def _raw_hole(raw: RawObservation) -> Optional[int]:
    if isinstance(raw, ShotObservation):
        return raw.hole_number
    for key in _HOLE_KEYS:
        value = raw.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def _coerce(raw: RawObservation) -> ShotObservation:
    if isinstance(raw, ShotObservation):
        return raw
    if not isinstance(raw, Mapping):
        raise ValidationError("each shot must be an object", field="shot")
    try:
        return ShotObservation.model_validate(raw)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or "shot"
        raise ValidationError(
            first.get("msg", "invalid value"), hole=_raw_hole(raw), field=field
        ) from exc


def normalize_observation(
    observation: ShotObservation, *, round_id: str, sequence_number: int
) -> Shot:
    hole = observation.hole_number

    start_lie = parse_lie(
        observation.start_lie, hole=hole, field="start_lie", allow_hole=False
    )
    end_lie = parse_lie(observation.end_lie, hole=hole, field="end_lie", allow_hole=True)

    start_distance = _resolve_distance(
        start_lie,
        yards=observation.start_dist_yards,
        feet=observation.start_dist_feet,
        hole=hole,
        prefix="start",
    )
    if end_lie is Lie.HOLE:
        end_distance = 0.0
    else:
        end_distance = _resolve_distance(
            end_lie,
            yards=observation.end_dist_yards,
            feet=observation.end_dist_feet,
            hole=hole,
            prefix="end",
        )

    penalty_strokes = observation.penalty_strokes or 0
    if penalty_strokes < 0:
        raise ValidationError(
            "penalty strokes must not be negative", hole=hole, field="penalty_strokes"
        )

    return Shot(
        round_id=round_id,
        hole_number=hole,
        sequence_number=sequence_number,
        club=(observation.club or "").strip() or None,
        note=observation.note,
        start_lie=start_lie,
        start_distance=start_distance,
        end_lie=end_lie,
        end_distance=end_distance,
        is_putt=bool(observation.is_putt),
        penalty_strokes=penalty_strokes,
        penalty=penalty_strokes > 0 or Lie.PENALTY in (start_lie, end_lie),
    )


def normalize_shots(
    round_id: str, observations: Iterable[RawObservation]
) -> NormalizedShots:
    """Validate a batch of observations for one round.

    Sequence numbers that are omitted become 1 + the number of shots already
    processed for that hole in this batch.
    """

    processed: Dict[int, int] = {}
    seen: Dict[int, Set[int]] = {}
    shots: List[Shot] = []

    for raw in observations:
        observation = _coerce(raw)
        hole = observation.hole_number
        if hole < 1 or hole > 18:
            raise ValidationError(
                "hole_number must be between 1 and 18", hole=hole, field="hole_number"
            )

        sequence = observation.sequence_number
        if sequence is None:
            sequence = processed.get(hole, 0) + 1
        elif sequence < 1:
            raise ValidationError(
                "sequence_number must be 1 or greater",
                hole=hole,
                field="sequence_number",
            )
        hole_seen = seen.setdefault(hole, set())
        if sequence in hole_seen:
            raise ValidationError(
                f"duplicate sequence_number {sequence}",
                hole=hole,
                field="sequence_number",
            )

        shots.append(
            normalize_observation(observation, round_id=round_id, sequence_number=sequence)
        )
        hole_seen.add(sequence)
        processed[hole] = processed.get(hole, 0) + 1

    shots.sort(key=lambda s: (s.hole_number, s.sequence_number))
    return NormalizedShots(round_id=round_id, shots=shots, holes=sorted(seen))


__all__ = ["normalize_observation", "normalize_shots", "parse_lie"]
