"""Pure strokes-gained computation helpers."""

from __future__ import annotations

from collections import defaultdict
from threading import Event
from typing import Dict, Iterable, List, Optional

from ..errors import ComputationCancelled
from .schemas import (
    HoleSG,
    Lie,
    RoundSG,
    SGCategory,
    Shot,
    ShotSG,
    empty_category_totals,
)
from .store import BaselineStore

_ARG_LIES = frozenset({Lie.SAND, Lie.RECOVERY})
_SHORT_RANGE_LIES = frozenset({Lie.FAIRWAY, Lie.ROUGH})


def categorize(shot: Shot, short_game_threshold_yd: float) -> SGCategory:
    if shot.is_putt or shot.start_lie is Lie.GREEN:
        return SGCategory.PUTTING
    if shot.start_lie is Lie.TEE:
        return SGCategory.OFF_THE_TEE
    if shot.start_lie in _ARG_LIES:
        return SGCategory.AROUND_GREEN
    if (
        shot.start_lie in _SHORT_RANGE_LIES
        and shot.start_distance < short_game_threshold_yd
    ):
        return SGCategory.AROUND_GREEN
    return SGCategory.APPROACH


def compute_shot_sg(
    shot: Shot,
    model: str,
    store: BaselineStore,
    *,
    short_game_threshold_yd: Optional[float] = None,
) -> ShotSG:
    """Expected-before minus expected-after, one stroke and any penalties."""

    threshold = (
        short_game_threshold_yd
        if short_game_threshold_yd is not None
        else store.short_game_threshold(model)
    )
    expected_start = store.lookup(model, shot.start_lie, shot.start_distance)
    expected_end = store.lookup(model, shot.end_lie, shot.end_distance)
    sg_value = expected_start - expected_end - 1.0 - shot.penalty_strokes

    return ShotSG(
        hole=shot.hole_number,
        shot=shot.sequence_number,
        category=categorize(shot, threshold),
        expected_start=expected_start,
        expected_end=expected_end,
        penalty_strokes=shot.penalty_strokes,
        sg_value=sg_value,
    )


def compute_round_sg(
    round_id: str,
    shots: Iterable[Shot],
    model: str,
    store: BaselineStore,
    *,
    cancel: Event | None = None,
) -> RoundSG:
    """Compute per-shot, per-hole and total strokes gained for a round.

    Any missing model or curve aborts the whole round; a set ``cancel`` event
    stops the computation between shots.
    """

    threshold = store.short_game_threshold(model)
    ordered = sorted(shots, key=lambda s: (s.hole_number, s.sequence_number))

    results: List[ShotSG] = []
    by_hole: Dict[int, List[ShotSG]] = defaultdict(list)
    for shot in ordered:
        if cancel is not None and cancel.is_set():
            raise ComputationCancelled(f"strokes gained for round {round_id}")
        result = compute_shot_sg(
            shot, model, store, short_game_threshold_yd=threshold
        )
        results.append(result)
        by_hole[shot.hole_number].append(result)

    holes: List[HoleSG] = []
    round_by_cat = empty_category_totals()
    for hole_number in sorted(by_hole):
        hole_shots = by_hole[hole_number]
        hole_by_cat = empty_category_totals()
        for result in hole_shots:
            hole_by_cat[result.category] += result.sg_value
            round_by_cat[result.category] += result.sg_value
        holes.append(
            HoleSG(
                hole=hole_number,
                sg_total=sum(s.sg_value for s in hole_shots),
                sg_by_cat=hole_by_cat,
                shots=hole_shots,
            )
        )

    return RoundSG(
        round_id=round_id,
        model=model,
        sg_total=sum(s.sg_value for s in results),
        sg_by_cat=round_by_cat,
        holes=holes,
        shots=results,
    )


__all__ = ["categorize", "compute_round_sg", "compute_shot_sg"]
