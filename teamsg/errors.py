"""Error taxonomy shared by the strokes-gained core."""

from __future__ import annotations


class SGError(Exception):
    """Base class for every error raised by the core."""


class ValidationError(SGError):
    """Malformed or inconsistent shot input.

    Always reported with the hole and field that failed; raised before any
    write so the stored shot set is left untouched.
    """

    def __init__(self, message: str, *, hole: int | None = None, field: str) -> None:
        self.hole = hole
        self.field = field
        self.reason = message
        prefix = f"hole {hole}" if hole is not None else "shot"
        super().__init__(f"{prefix}: {field}: {message}")


class ModelNotFoundError(SGError):
    def __init__(self, model: str) -> None:
        self.model = model
        super().__init__(f"baseline model {model!r} not found")


class IncompleteModelError(SGError):
    def __init__(self, model: str, lie: str) -> None:
        self.model = model
        self.lie = lie
        super().__init__(f"baseline model {model!r} has no points for lie {lie!r}")


class DataUnavailableError(SGError):
    """Persistence failure or fetch timeout; the caller may retry."""


class ComputationCancelled(SGError):
    """The caller abandoned the request before the computation finished."""


class RoundNotFound(SGError):
    def __init__(self, round_id: str) -> None:
        self.round_id = round_id
        super().__init__(f"round {round_id!r} not found")


__all__ = [
    "SGError",
    "ValidationError",
    "ModelNotFoundError",
    "IncompleteModelError",
    "DataUnavailableError",
    "ComputationCancelled",
    "RoundNotFound",
]
