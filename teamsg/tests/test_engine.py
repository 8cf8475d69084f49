from __future__ import annotations

import math
from threading import Event

import pytest

from teamsg.errors import ComputationCancelled, IncompleteModelError, ModelNotFoundError
from teamsg.sg.engine import categorize, compute_round_sg, compute_shot_sg
from teamsg.sg.schemas import CurveKind, Lie, SGCategory, Shot
from teamsg.sg.store import BaselineStore


def _shot(
    start_lie: Lie,
    start_distance: float,
    end_lie: Lie,
    end_distance: float,
    *,
    hole: int = 1,
    seq: int = 1,
    is_putt: bool = False,
    penalty_strokes: int = 0,
) -> Shot:
    return Shot(
        round_id="r1",
        hole_number=hole,
        sequence_number=seq,
        start_lie=start_lie,
        start_distance=start_distance,
        end_lie=end_lie,
        end_distance=end_distance,
        is_putt=is_putt,
        penalty_strokes=penalty_strokes,
        penalty=penalty_strokes > 0,
    )


def test_no_gain_when_expectation_drops_by_one(store) -> None:
    result = compute_shot_sg(_shot(Lie.FAIRWAY, 150, Lie.FAIRWAY, 50), "simple", store)
    assert result.expected_start == pytest.approx(3.0)
    assert result.expected_end == pytest.approx(2.0)
    assert result.sg_value == pytest.approx(0.0)


def test_half_stroke_lost_when_expectation_drops_by_half(store) -> None:
    result = compute_shot_sg(_shot(Lie.FAIRWAY, 150, Lie.ROUGH, 50), "simple", store)
    assert result.sg_value == pytest.approx(-0.5)


def test_holed_putt_gains_expected_start_minus_one(store) -> None:
    result = compute_shot_sg(_shot(Lie.GREEN, 10, Lie.HOLE, 0), "simple", store)
    assert result.expected_end == 0.0
    assert result.sg_value == pytest.approx(result.expected_start - 1)


def test_eight_foot_putt_scenario(store) -> None:
    result = compute_shot_sg(_shot(Lie.GREEN, 8, Lie.HOLE, 0), "simple", store)
    assert result.category is SGCategory.PUTTING
    assert result.expected_start == pytest.approx(1.25 + 0.6 * (1.68 - 1.25))
    assert result.sg_value == pytest.approx(0.508)


def test_penalty_strokes_reduce_gain(store) -> None:
    # Tee 200yd expects 3.1; a penalty drop at 90yd reads the rough curve (2.9).
    shot = _shot(Lie.TEE, 200, Lie.PENALTY, 90, penalty_strokes=1)
    result = compute_shot_sg(shot, "simple", store)
    assert result.expected_start == pytest.approx(3.1)
    assert result.expected_end == pytest.approx(2.9)
    assert result.penalty_strokes == 1
    assert result.sg_value == pytest.approx(-1.8)
    assert result.category is SGCategory.OFF_THE_TEE


@pytest.mark.parametrize(
    "shot, expected",
    [
        (_shot(Lie.GREEN, 12, Lie.GREEN, 2), SGCategory.PUTTING),
        (_shot(Lie.FAIRWAY, 3, Lie.HOLE, 0, is_putt=True), SGCategory.PUTTING),
        (_shot(Lie.TEE, 380, Lie.FAIRWAY, 120), SGCategory.OFF_THE_TEE),
        (_shot(Lie.TEE, 150, Lie.GREEN, 20), SGCategory.OFF_THE_TEE),
        (_shot(Lie.FAIRWAY, 140, Lie.GREEN, 15), SGCategory.APPROACH),
        (_shot(Lie.ROUGH, 30, Lie.GREEN, 6), SGCategory.APPROACH),
        (_shot(Lie.ROUGH, 29.9, Lie.GREEN, 6), SGCategory.AROUND_GREEN),
        (_shot(Lie.FAIRWAY, 12, Lie.GREEN, 4), SGCategory.AROUND_GREEN),
        (_shot(Lie.SAND, 80, Lie.GREEN, 20), SGCategory.AROUND_GREEN),
        (_shot(Lie.RECOVERY, 150, Lie.FAIRWAY, 90), SGCategory.AROUND_GREEN),
        (_shot(Lie.PENALTY, 20, Lie.GREEN, 10), SGCategory.APPROACH),
        (_shot(Lie.OTHER, 10, Lie.GREEN, 10), SGCategory.APPROACH),
    ],
)
def test_categorize(shot: Shot, expected: SGCategory) -> None:
    assert categorize(shot, 30.0) is expected


def test_threshold_is_per_model(tmp_path) -> None:
    store = BaselineStore(tmp_path)
    store.replace_curve("wide", CurveKind.OFF_GREEN, [("Fairway", 10, 2.0), ("Fairway", 100, 2.8)])
    store.set_short_game_threshold("wide", 50)
    result = compute_shot_sg(_shot(Lie.FAIRWAY, 45, Lie.FAIRWAY, 10), "wide", store)
    assert result.category is SGCategory.AROUND_GREEN

    store.set_short_game_threshold("wide", 40)
    result = compute_shot_sg(_shot(Lie.FAIRWAY, 45, Lie.FAIRWAY, 10), "wide", store)
    assert result.category is SGCategory.APPROACH


def test_round_totals_add_up(store) -> None:
    shots = [
        _shot(Lie.TEE, 250, Lie.FAIRWAY, 150, hole=1, seq=1),
        _shot(Lie.FAIRWAY, 150, Lie.SAND, 20, hole=1, seq=2),
        _shot(Lie.SAND, 20, Lie.GREEN, 5, hole=1, seq=3),
        _shot(Lie.GREEN, 5, Lie.HOLE, 0, hole=1, seq=4),
        _shot(Lie.TEE, 150, Lie.GREEN, 10, hole=2, seq=1),
        _shot(Lie.GREEN, 10, Lie.GREEN, 1, hole=2, seq=2),
        _shot(Lie.GREEN, 1, Lie.HOLE, 0, hole=2, seq=3),
    ]
    result = compute_round_sg("r1", list(reversed(shots)), "simple", store)

    assert [h.hole for h in result.holes] == [1, 2]
    assert [(s.hole, s.shot) for s in result.shots] == [
        (s.hole_number, s.sequence_number) for s in shots
    ]
    assert math.isclose(result.sg_total, sum(s.sg_value for s in result.shots), abs_tol=1e-9)
    assert math.isclose(result.sg_total, sum(result.sg_by_cat.values()), abs_tol=1e-9)
    for hole in result.holes:
        assert math.isclose(hole.sg_total, sum(hole.sg_by_cat.values()), abs_tol=1e-9)
        assert math.isclose(hole.sg_total, sum(s.sg_value for s in hole.shots), abs_tol=1e-9)

    # A 3.3-stroke hole (250yd tee) played in 4: 0.7 strokes lost.
    assert result.holes[0].sg_total == pytest.approx(3.3 - 4)
    assert result.sg_by_cat[SGCategory.PUTTING] == pytest.approx(
        sum(s.sg_value for s in result.shots if s.category is SGCategory.PUTTING)
    )


def test_unknown_model_fails_whole_round(store) -> None:
    with pytest.raises(ModelNotFoundError):
        compute_round_sg("r1", [], "nope", store)


def test_incomplete_model_names_lie(tmp_path) -> None:
    store = BaselineStore(tmp_path)
    store.replace_curve("putting-only", CurveKind.PUTTING, [(1, 1.0), (10, 1.7)])
    with pytest.raises(IncompleteModelError) as excinfo:
        compute_round_sg(
            "r1", [_shot(Lie.FAIRWAY, 100, Lie.GREEN, 10)], "putting-only", store
        )
    assert excinfo.value.lie == "Fairway"


def test_cancelled_computation_returns_nothing(store) -> None:
    cancel = Event()
    cancel.set()
    with pytest.raises(ComputationCancelled):
        compute_round_sg(
            "r1", [_shot(Lie.GREEN, 5, Lie.HOLE, 0)], "simple", store, cancel=cancel
        )
