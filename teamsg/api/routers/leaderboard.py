from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from teamsg.api.errors import as_http_error
from teamsg.api.security import require_api_key
from teamsg.api.user_header import UserIdHeader
from teamsg.errors import SGError
from teamsg.identity import MembershipDirectory, get_membership_directory
from teamsg.leaderboard import (
    LeaderboardQuery,
    LeaderboardService,
    Scope,
    get_leaderboard_service,
)
from teamsg.rounds.models import RoundType

router = APIRouter(
    prefix="/api/leaderboard",
    tags=["leaderboard"],
    dependencies=[Depends(require_api_key)],
)

logger = logging.getLogger(__name__)


@router.get("")
def get_leaderboard(
    user_id: UserIdHeader = None,
    model: str = Query(..., min_length=1),
    scope: Scope = Query(default=Scope.ALL),
    round_type: RoundType = Query(default=RoundType.TOURNAMENT, alias="roundType"),
    start: Optional[date] = Query(default=None),
    end: Optional[date] = Query(default=None),
    service: LeaderboardService = Depends(get_leaderboard_service),
    directory: MembershipDirectory = Depends(get_membership_directory),
) -> Dict[str, Any]:
    team_ids = directory.team_ids_for_user(user_id) if scope is Scope.TEAM else frozenset()
    try:
        query = LeaderboardQuery.with_defaults(
            round_type=round_type,
            scope=scope,
            start_date=start,
            end_date=end,
            team_ids=team_ids,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc

    try:
        rows = service.build(query, model)
    except SGError as exc:
        logger.warning(
            "leaderboard failed",
            extra={"model": model, "scope": scope.value, "error": str(exc)},
        )
        raise as_http_error(exc) from exc

    return {
        "model": model,
        "scope": query.scope.value,
        "roundType": query.round_type.value,
        "start": query.start_date.isoformat(),
        "end": query.end_date.isoformat(),
        "rows": [row.model_dump(mode="json", by_alias=True) for row in rows],
    }
