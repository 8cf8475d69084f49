from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends

from teamsg.api.errors import as_http_error
from teamsg.api.security import require_api_key
from teamsg.errors import SGError
from teamsg.rounds.service import RoundService, get_round_service

router = APIRouter(
    prefix="/api/rounds", tags=["shots"], dependencies=[Depends(require_api_key)]
)

logger = logging.getLogger(__name__)


@router.get("/{round_id}/shots")
def list_shots(
    round_id: str, service: RoundService = Depends(get_round_service)
) -> List[Dict[str, Any]]:
    try:
        shots = service.fetch_shots(round_id)
    except SGError as exc:
        raise as_http_error(exc) from exc
    return [shot.model_dump(mode="json", by_alias=True) for shot in shots]


@router.put("/{round_id}/shots")
def replace_shots(
    round_id: str,
    observations: List[Dict[str, Any]] = Body(...),
    service: RoundService = Depends(get_round_service),
) -> Dict[str, Any]:
    """Replace the stored shots of every hole present in ``observations``."""

    try:
        normalized = service.submit_shots(round_id, observations)
    except SGError as exc:
        logger.info(
            "shot submission rejected",
            extra={"round_id": round_id, "error": str(exc)},
        )
        raise as_http_error(exc) from exc
    return {
        "roundId": round_id,
        "holes": normalized.holes,
        "inserted": len(normalized.shots),
    }
