"""Strokes gained core package."""

from .engine import categorize, compute_round_sg, compute_shot_sg  # noqa: F401
from .schemas import (  # noqa: F401
    CurveKind,
    HoleSG,
    Lie,
    RoundSG,
    SGCategory,
    Shot,
    ShotSG,
)
from .store import BaselineStore, get_baseline_store  # noqa: F401
