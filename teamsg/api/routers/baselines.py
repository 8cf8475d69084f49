"""Baseline model administration: list, templates and curve uploads."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from teamsg.api.errors import as_http_error
from teamsg.api.security import require_admin_token, require_api_key
from teamsg.errors import SGError
from teamsg.sg.curves import TEMPLATE_OFF_GREEN, TEMPLATE_PUTTING
from teamsg.sg.schemas import CurveKind, CurvePoint
from teamsg.sg.store import BaselineStore, OffGreenPoint, get_baseline_store

router = APIRouter(
    prefix="/api/sg/models",
    tags=["baselines"],
    dependencies=[Depends(require_api_key)],
)

logger = logging.getLogger(__name__)


class PuttingUpload(BaseModel):
    points: List[CurvePoint] = Field(min_length=1)
    merge: bool = False


class OffGreenUpload(BaseModel):
    points: List[OffGreenPoint] = Field(min_length=1)
    merge: bool = False


class ThresholdUpdate(BaseModel):
    yards: float = Field(
        gt=0,
        validation_alias=AliasChoices("yards", "short_game_threshold_yd", "shortGameThresholdYd"),
    )

    model_config = ConfigDict(populate_by_name=True)


def _upload(
    store: BaselineStore,
    model: str,
    kind: CurveKind,
    points: List[Any],
    *,
    merge: bool,
    actor: str,
) -> Dict[str, Any]:
    try:
        if merge:
            count = store.merge_curve(model, kind, points)
        else:
            count = store.replace_curve(model, kind, points)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    logger.info(
        "baseline upload",
        extra={"model": model, "kind": kind.value, "points": count, "actor": actor},
    )
    return {"ok": True, "points": count, **store.describe(model)}


@router.get("")
def list_models(store: BaselineStore = Depends(get_baseline_store)) -> Dict[str, Any]:
    return {"models": [store.describe(name) for name in store.list_models()]}


@router.get("/template")
def get_templates() -> Dict[str, Any]:
    return {
        "putting": [
            {"dist_ft": distance, "exp_strokes": expected}
            for distance, expected in TEMPLATE_PUTTING
        ],
        "offGreen": [
            {"lie": lie.value, "dist_yd": distance, "exp_strokes": expected}
            for lie, points in TEMPLATE_OFF_GREEN.items()
            for distance, expected in points
        ],
    }


@router.get("/{model}")
def describe_model(
    model: str, store: BaselineStore = Depends(get_baseline_store)
) -> Dict[str, Any]:
    try:
        return store.describe(model)
    except SGError as exc:
        raise as_http_error(exc) from exc


@router.put("/{model}/putting")
def upload_putting(
    model: str,
    payload: PuttingUpload,
    actor: str = Depends(require_admin_token),
    store: BaselineStore = Depends(get_baseline_store),
) -> Dict[str, Any]:
    return _upload(
        store, model, CurveKind.PUTTING, payload.points, merge=payload.merge, actor=actor
    )


@router.put("/{model}/off-green")
def upload_off_green(
    model: str,
    payload: OffGreenUpload,
    actor: str = Depends(require_admin_token),
    store: BaselineStore = Depends(get_baseline_store),
) -> Dict[str, Any]:
    return _upload(
        store, model, CurveKind.OFF_GREEN, payload.points, merge=payload.merge, actor=actor
    )


@router.put("/{model}/threshold")
def update_threshold(
    model: str,
    payload: ThresholdUpdate,
    actor: str = Depends(require_admin_token),
    store: BaselineStore = Depends(get_baseline_store),
) -> Dict[str, Any]:
    try:
        store.set_short_game_threshold(model, payload.yards)
    except SGError as exc:
        raise as_http_error(exc) from exc
    logger.info(
        "short game threshold updated",
        extra={"model": model, "yards": payload.yards, "actor": actor},
    )
    return store.describe(model)
