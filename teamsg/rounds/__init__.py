from .models import Round, RoundRow, RoundType, ShotObservation
from .normalize import normalize_shots
from .service import RoundService, get_round_service

__all__ = [
    "Round",
    "RoundRow",
    "RoundType",
    "ShotObservation",
    "RoundService",
    "get_round_service",
    "normalize_shots",
]
