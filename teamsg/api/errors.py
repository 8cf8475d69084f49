"""Translate core errors into HTTP responses."""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from teamsg.errors import (
    ComputationCancelled,
    DataUnavailableError,
    IncompleteModelError,
    ModelNotFoundError,
    RoundNotFound,
    SGError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def as_http_error(exc: SGError) -> HTTPException:
    if isinstance(exc, ValidationError):
        return HTTPException(
            status_code=422,
            detail={"error": str(exc), "hole": exc.hole, "field": exc.field},
        )
    if isinstance(exc, ModelNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, IncompleteModelError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": str(exc), "model": exc.model, "lie": exc.lie},
        )
    if isinstance(exc, RoundNotFound):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="round not found"
        )
    if isinstance(exc, (DataUnavailableError, ComputationCancelled)):
        logger.warning("request failed: %s", exc)
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        )
    logger.error("unmapped strokes-gained error: %s", exc)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="internal error"
    )


__all__ = ["as_http_error"]
