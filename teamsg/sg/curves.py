"""Expected strokes interpolation over baseline curves."""

from __future__ import annotations

from bisect import bisect_left
from typing import Dict, Iterable, List, Sequence, Tuple, Union

from .schemas import CurvePoint, Lie

Point = Tuple[float, float]
PointLike = Union[CurvePoint, Sequence[float]]

# Putting template: feet -> expected strokes.
TEMPLATE_PUTTING: List[Point] = [
    (1.0, 1.00),
    (2.0, 1.03),
    (3.0, 1.10),
    (5.0, 1.25),
    (8.0, 1.55),
    (10.0, 1.68),
    (12.0, 1.76),
    (15.0, 1.88),
    (20.0, 2.03),
    (25.0, 2.15),
    (30.0, 2.25),
    (40.0, 2.40),
    (50.0, 2.52),
    (60.0, 2.60),
]

# Off-green template: yards -> expected strokes, per lie.
TEMPLATE_OFF_GREEN: Dict[Lie, List[Point]] = {
    Lie.TEE: [(270.0, 3.92), (300.0, 4.05)],
    Lie.FAIRWAY: [
        (20.0, 2.08),
        (30.0, 2.18),
        (50.0, 2.28),
        (150.0, 2.92),
        (200.0, 3.15),
    ],
    Lie.ROUGH: [(100.0, 2.88), (200.0, 3.32)],
    Lie.SAND: [(20.0, 2.30), (40.0, 2.45)],
    Lie.RECOVERY: [(20.0, 2.50), (40.0, 2.70)],
}


def interpolate(points: Sequence[Point], distance: float) -> float:
    """Expected strokes at `distance`, clamped to the first and last points.

    A distance on a breakpoint returns that point's value exactly.
    """

    if not points:
        raise ValueError("points must not be empty")

    distances = [d for d, _ in points]
    index = bisect_left(distances, float(distance))
    if index == 0:
        return points[0][1]
    if index == len(points):
        return points[-1][1]

    hi_dist, hi_value = points[index]
    if hi_dist == distance:
        return hi_value
    lo_dist, lo_value = points[index - 1]
    return lo_value + (distance - lo_dist) * (hi_value - lo_value) / (hi_dist - lo_dist)


def _check_increasing(points: Sequence[Point]) -> None:
    for (prev, _), (current, _) in zip(points, points[1:]):
        if current <= prev:
            raise ValueError(f"curve distances must be strictly increasing (at {current:g})")


def _as_point(raw: PointLike) -> Point:
    if isinstance(raw, CurvePoint):
        return raw.distance, raw.expected_strokes
    distance, expected = raw
    point = CurvePoint(distance=distance, expected_strokes=expected)
    return point.distance, point.expected_strokes


def prepare_points(raw_points: Iterable[PointLike]) -> List[Point]:
    """Coerce uploaded points into a sorted, validated curve.

    Uploads arrive in any order; duplicate distances are rejected rather than
    silently collapsed.
    """

    points = sorted((_as_point(raw) for raw in raw_points), key=lambda p: p[0])
    _check_increasing(points)
    return points


def merge_points(existing: Iterable[Point], incoming: Iterable[PointLike]) -> List[Point]:
    """Upsert ``incoming`` into ``existing`` keyed by distance."""

    merged: Dict[float, float] = dict(existing)
    for distance, expected in prepare_points(incoming):
        merged[distance] = expected
    return sorted(merged.items())


__all__ = [
    "TEMPLATE_OFF_GREEN",
    "TEMPLATE_PUTTING",
    "interpolate",
    "merge_points",
    "prepare_points",
]
