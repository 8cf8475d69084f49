from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from teamsg.api.errors import as_http_error
from teamsg.api.security import require_api_key
from teamsg.config import get_settings
from teamsg.errors import SGError
from teamsg.reporting import RoundFilters, RoundReporter, get_round_reporter
from teamsg.rounds.aggregate import rolling_player_averages
from teamsg.rounds.models import RoundType

router = APIRouter(tags=["strokes-gained"], dependencies=[Depends(require_api_key)])


@router.get("/api/rounds/{round_id}/sg")
def get_round_sg(
    round_id: str,
    model: str = Query(..., min_length=1),
    reporter: RoundReporter = Depends(get_round_reporter),
) -> Dict[str, Any]:
    try:
        round_sg = reporter.round_sg(round_id, model)
        totals = reporter.round_totals(round_id, model, round_sg=round_sg)
    except SGError as exc:
        raise as_http_error(exc) from exc
    return {
        "sg": round_sg.model_dump(mode="json", by_alias=True),
        "totals": totals.model_dump(mode="json", by_alias=True),
    }


@router.get("/api/players/{player_id}/rolling")
def get_player_rolling(
    player_id: str,
    model: str = Query(..., min_length=1),
    window: Optional[int] = Query(default=None, ge=1, le=100),
    round_type: Optional[RoundType] = Query(default=None, alias="roundType"),
    start: Optional[date] = Query(default=None),
    end: Optional[date] = Query(default=None),
    reporter: RoundReporter = Depends(get_round_reporter),
) -> Dict[str, Any]:
    if start is not None and end is not None and start > end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start must not be after end",
        )
    settings = get_settings()
    size = window or settings.rolling_window
    filters = RoundFilters(
        round_type=round_type,
        start_date=start,
        end_date=end,
        player_id=player_id,
        limit=settings.leaderboard_max_rows,
    )
    try:
        rows = reporter.fetch_round_rows(filters, model)
    except SGError as exc:
        raise as_http_error(exc) from exc
    averages = rolling_player_averages(rows, player_id, size)
    return averages.model_dump(mode="json", by_alias=True)
