"""Per-hole, per-round and rolling per-player aggregation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from teamsg.sg.schemas import RoundSG, SGCategory

from .models import (
    HoleTotals,
    PlayerRollingAverage,
    RoundRow,
    RoundScores,
    RoundTotals,
)

# Round-row column for each category average.
SG_FIELDS: Dict[SGCategory, str] = {
    SGCategory.OFF_THE_TEE: "sg_ott",
    SGCategory.APPROACH: "sg_app",
    SGCategory.AROUND_GREEN: "sg_arg",
    SGCategory.PUTTING: "sg_putt",
}

_FIR_PARS = {4, 5}
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class ScoreTotals:
    holes_played: int = 0
    strokes: Optional[int] = None
    par: Optional[int] = None
    to_par: Optional[int] = None
    putts: Optional[int] = None
    penalties: Optional[int] = None
    fir_hits: int = 0
    fir_opps: int = 0
    gir_hits: int = 0
    gir_opps: int = 0


def _safe_sum(values: list[int | None]) -> int | None:
    filtered = [v for v in values if v is not None]
    if not filtered:
        return None
    return sum(filtered)


def _mean(values: list[float | None]) -> float | None:
    filtered = [v for v in values if v is not None]
    if not filtered:
        return None
    return sum(filtered) / len(filtered)


def score_totals(scores: RoundScores) -> ScoreTotals:
    """Round-level counts sourced from the hole-score records."""

    totals = ScoreTotals(holes_played=0)
    to_par_values: list[int | None] = []
    holes = list(scores.holes.values())

    for hole in holes:
        if hole.strokes is not None:
            totals.holes_played += 1
        if hole.strokes is not None and hole.par is not None:
            to_par_values.append(hole.strokes - hole.par)
        if hole.par in _FIR_PARS and hole.fairway_hit is not None:
            totals.fir_opps += 1
            if hole.fairway_hit:
                totals.fir_hits += 1
        if hole.gir is not None:
            totals.gir_opps += 1
            if hole.gir:
                totals.gir_hits += 1

    totals.strokes = _safe_sum([hole.strokes for hole in holes])
    totals.par = _safe_sum([hole.par for hole in holes])
    totals.to_par = _safe_sum(to_par_values)
    totals.putts = _safe_sum([hole.putts for hole in holes])
    totals.penalties = _safe_sum([hole.penalties for hole in holes])
    return totals


def aggregate_round(
    round_sg: RoundSG, scores: RoundScores, *, player_id: str | None = None
) -> RoundTotals:
    """Combine a round's SG results with its hole scores.

    SG fields stay ``None`` when the round has no recorded shots.
    """

    sg_by_hole = {hole.hole: hole for hole in round_sg.holes}
    hole_numbers = sorted(set(scores.holes) | set(sg_by_hole))

    holes: List[HoleTotals] = []
    for number in hole_numbers:
        score = scores.holes.get(number)
        hole_sg = sg_by_hole.get(number)
        to_par = None
        if score is not None and score.strokes is not None and score.par is not None:
            to_par = score.strokes - score.par
        holes.append(
            HoleTotals(
                hole=number,
                par=score.par if score else None,
                strokes=score.strokes if score else None,
                to_par=to_par,
                putts=score.putts if score else None,
                penalties=score.penalties if score else None,
                fairway_hit=score.fairway_hit if score else None,
                gir=score.gir if score else None,
                shot_count=len(hole_sg.shots) if hole_sg else 0,
                sg_total=hole_sg.sg_total if hole_sg else None,
                sg_by_cat=dict(hole_sg.sg_by_cat) if hole_sg else None,
            )
        )

    totals = score_totals(scores)
    has_shots = bool(round_sg.shots)
    return RoundTotals(
        round_id=round_sg.round_id,
        player_id=player_id or scores.player_id,
        model=round_sg.model,
        holes=holes,
        holes_played=totals.holes_played,
        strokes=totals.strokes,
        par=totals.par,
        to_par=totals.to_par,
        putts=totals.putts,
        penalties=totals.penalties,
        fir_hits=totals.fir_hits,
        fir_opps=totals.fir_opps,
        gir_hits=totals.gir_hits,
        gir_opps=totals.gir_opps,
        sg_total=round_sg.sg_total if has_shots else None,
        sg_by_cat=dict(round_sg.sg_by_cat) if has_shots else None,
    )


def rolling_player_averages(
    rows: Iterable[RoundRow], player_id: str, window: int
) -> PlayerRollingAverage:
    """Means over the player's ``window`` most recent rows.

    ``rows`` are expected to be pre-filtered by round type and date. Rounds
    without SG data still count as played but are left out of SG means.
    """

    if window < 1:
        raise ValueError("window must be at least 1")

    own = [row for row in rows if row.player_id == player_id]
    own.sort(key=lambda row: row.created_at or _OLDEST, reverse=True)
    recent = own[:window]

    fir_opps = sum(row.fir_opps for row in recent)
    gir_opps = sum(row.gir_opps for row in recent)
    averages = {
        f"avg_{column}": _mean([getattr(row, column) for row in recent])
        for column in SG_FIELDS.values()
    }

    return PlayerRollingAverage(
        player_id=player_id,
        window=window,
        rounds_played=len(recent),
        rounds_with_sg=sum(1 for row in recent if row.sg_total is not None),
        round_ids=[row.round_id for row in recent],
        avg_to_par=_mean([row.to_par for row in recent]),
        avg_sg_total=_mean([row.sg_total for row in recent]),
        putts_per_round=_mean([row.putts for row in recent]),
        fir_pct=(sum(row.fir_hits for row in recent) / fir_opps * 100) if fir_opps else None,
        gir_pct=(sum(row.gir_hits for row in recent) / gir_opps * 100) if gir_opps else None,
        **averages,
    )


__all__ = [
    "SG_FIELDS",
    "ScoreTotals",
    "aggregate_round",
    "rolling_player_averages",
    "score_totals",
]
