"""Baseline store: named skill models holding putting and off-green curves."""

from __future__ import annotations

import logging
import re
from contextlib import nullcontext
from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from threading import RLock
from typing import (
    Callable,
    ContextManager,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Union,
)

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ..config import get_settings
from ..errors import DataUnavailableError, IncompleteModelError, ModelNotFoundError
from ..storage import locked, read_json, write_json_atomic
from .curves import Point, PointLike, interpolate, merge_points, prepare_points
from .schemas import OFF_GREEN_LIES, CurveKind, Lie

logger = logging.getLogger(__name__)

SAFE_MODEL_RE = re.compile(r"^[A-Za-z0-9_.-]+$")

# Lies without a curve of their own are read from the rough curve.
CURVE_LIE: Dict[Lie, Lie] = {Lie.PENALTY: Lie.ROUGH, Lie.OTHER: Lie.ROUGH}


class OffGreenPoint(BaseModel):
    lie: Lie
    distance: float = Field(ge=0, validation_alias=AliasChoices("distance", "dist_yd"))
    expected_strokes: float = Field(
        gt=0, validation_alias=AliasChoices("expected_strokes", "exp_strokes")
    )

    model_config = ConfigDict(populate_by_name=True, frozen=True)


OffGreenPointLike = Union[OffGreenPoint, Mapping[str, object], Sequence[object]]


@dataclass
class BaselineModel:
    name: str
    short_game_threshold_yd: float
    putting: List[Point] = field(default_factory=list)
    off_green: Dict[Lie, List[Point]] = field(default_factory=dict)
    revision: int = 0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "short_game_threshold_yd": self.short_game_threshold_yd,
            "revision": self.revision,
            "putting": [list(point) for point in self.putting],
            "off_green": {
                lie.value: [list(point) for point in points]
                for lie, points in self.off_green.items()
            },
        }

    @staticmethod
    def from_dict(data: dict) -> "BaselineModel":
        return BaselineModel(
            name=data["name"],
            short_game_threshold_yd=float(data["short_game_threshold_yd"]),
            revision=int(data.get("revision", 0)),
            putting=prepare_points(data.get("putting", [])),
            off_green={
                Lie(lie): prepare_points(points)
                for lie, points in (data.get("off_green") or {}).items()
            },
        )


def _sanitize_model_name(model: str) -> str:
    if not model or not SAFE_MODEL_RE.match(model):
        raise ValueError(f"Invalid baseline model name: {model!r}")
    return model


def _off_green_lie(value: Lie | str) -> Lie:
    lie = Lie(value)
    if lie not in OFF_GREEN_LIES:
        raise ValueError(f"{lie.value} is not an off-green curve lie")
    return lie


def _group_off_green(points: Iterable[OffGreenPointLike]) -> Dict[Lie, List[PointLike]]:
    grouped: Dict[Lie, List[PointLike]] = {}
    for raw in points:
        if isinstance(raw, OffGreenPoint):
            point = raw
        elif isinstance(raw, Mapping):
            point = OffGreenPoint.model_validate(raw)
        else:
            lie, distance, expected = raw
            point = OffGreenPoint(lie=lie, distance=distance, expected_strokes=expected)
        lie = _off_green_lie(point.lie)
        grouped.setdefault(lie, []).append((point.distance, point.expected_strokes))
    return grouped


class BaselineStore:
    """Thread-safe registry of baseline models.

    With a ``base_dir`` every model is persisted as ``<model>.json``; without
    one the store lives in memory only.
    """

    def __init__(
        self,
        base_dir: Path | str | None = None,
        *,
        default_threshold_yd: float | None = None,
    ) -> None:
        self._base_dir = Path(base_dir).expanduser().resolve() if base_dir else None
        self._default_threshold = (
            default_threshold_yd
            if default_threshold_yd is not None
            else get_settings().short_game_threshold_yd
        )
        self._models: Dict[str, BaselineModel] = {}
        self._lock = RLock()
        self._load_from_disk()

    # Loading collaborator
    def replace_curve(
        self,
        model: str,
        kind: CurveKind | str,
        points: Iterable[PointLike] | Iterable[OffGreenPointLike],
    ) -> int:
        """Replace the whole putting or off-green curve of ``model``."""

        return self._write_curve(model, CurveKind(kind), points, merge=False)

    def merge_curve(
        self,
        model: str,
        kind: CurveKind | str,
        points: Iterable[PointLike] | Iterable[OffGreenPointLike],
    ) -> int:
        """Upsert points into the existing curve, keyed by (lie,) distance."""

        return self._write_curve(model, CurveKind(kind), points, merge=True)

    def set_short_game_threshold(self, model: str, yards: float) -> None:
        if yards <= 0:
            raise ValueError("short game threshold must be positive")
        if not SAFE_MODEL_RE.match(model or ""):
            raise ModelNotFoundError(model)
        self._update(
            model,
            lambda baseline: replace(baseline, short_game_threshold_yd=float(yards)),
            create=False,
        )

    # Readers
    def list_models(self) -> List[str]:
        with self._lock:
            return sorted(self._models)

    def revision(self, model: str) -> int:
        with self._lock:
            return self._require(model).revision

    def short_game_threshold(self, model: str) -> float:
        with self._lock:
            return self._require(model).short_game_threshold_yd

    def describe(self, model: str) -> dict:
        with self._lock:
            baseline = self._require(model)
            return {
                "model": baseline.name,
                "revision": baseline.revision,
                "shortGameThresholdYd": baseline.short_game_threshold_yd,
                "puttingPoints": len(baseline.putting),
                "offGreenPoints": {
                    lie.value: len(points) for lie, points in baseline.off_green.items()
                },
            }

    def lookup(self, model: str, lie: Lie | str, distance: float) -> float:
        """Expected strokes to hole out from ``distance`` at ``lie``.

        Green distances are feet, all other lies yards. ``Hole`` is always 0.
        """

        lie = Lie(lie)
        if lie is Lie.HOLE:
            return 0.0

        with self._lock:
            baseline = self._require(model)
            if lie is Lie.GREEN:
                curve_lie = Lie.GREEN
                points = baseline.putting
            else:
                curve_lie = CURVE_LIE.get(lie, lie)
                points = baseline.off_green.get(curve_lie, [])

        if not points:
            raise IncompleteModelError(model, curve_lie.value)
        return interpolate(points, distance)

    # Internal helpers
    def _require(self, model: str) -> BaselineModel:
        baseline = self._models.get(model)
        if baseline is None:
            raise ModelNotFoundError(model)
        return baseline

    def _file_lock(self, model: str) -> ContextManager[None]:
        if self._base_dir is None:
            return nullcontext()
        return locked(self._base_dir / f".{model}.lock")

    def _read_model(self, model: str) -> Optional[BaselineModel]:
        if self._base_dir is None:
            return None
        path = self._base_dir / f"{model}.json"
        if not path.exists():
            return None
        return _parse_model(path)

    def _update(
        self,
        model: str,
        change: Callable[[BaselineModel], BaselineModel],
        *,
        create: bool,
    ) -> BaselineModel:
        """Apply ``change`` to the freshest copy of ``model`` and persist it.

        The model is re-read from disk under a per-model file lock, so stores
        in other processes sharing ``base_dir`` never drop each other's writes.
        """

        with self._lock, self._file_lock(model):
            current = self._read_model(model) or self._models.get(model)
            if current is None:
                if not create:
                    raise ModelNotFoundError(model)
                current = BaselineModel(
                    name=model, short_game_threshold_yd=self._default_threshold
                )
            updated = change(current)
            updated.revision = current.revision + 1
            if self._base_dir is not None:
                write_json_atomic(self._base_dir / f"{model}.json", updated.to_dict())
            self._models[model] = updated
            return updated

    def _write_curve(
        self, model: str, kind: CurveKind, points: Iterable, *, merge: bool
    ) -> int:
        _sanitize_model_name(model)
        putting: List[PointLike] = []
        grouped: Dict[Lie, List[PointLike]] = {}
        if kind is CurveKind.PUTTING:
            putting = list(points)
            count = len(putting)
            if not merge:
                putting = prepare_points(putting)
        else:
            grouped = _group_off_green(points)
            count = sum(len(lie_points) for lie_points in grouped.values())

        def change(baseline: BaselineModel) -> BaselineModel:
            if kind is CurveKind.PUTTING:
                curve = merge_points(baseline.putting, putting) if merge else putting
                return replace(baseline, putting=curve)
            off_green = dict(baseline.off_green) if merge else {}
            for lie, lie_points in grouped.items():
                off_green[lie] = merge_points(off_green.get(lie, []), lie_points)
            return replace(baseline, off_green=off_green)

        self._update(model, change, create=True)
        logger.info(
            "baseline curve written",
            extra={"model": model, "kind": kind.value, "points": count, "merge": merge},
        )
        return count

    def _load_from_disk(self) -> None:
        if self._base_dir is None or not self._base_dir.exists():
            return
        for path in sorted(self._base_dir.glob("*.json")):
            baseline = _parse_model(path)
            self._models[baseline.name] = baseline


def _parse_model(path: Path) -> BaselineModel:
    try:
        return BaselineModel.from_dict(read_json(path))
    except (ValueError, KeyError) as exc:
        raise DataUnavailableError(
            f"could not load baseline file {path.name}: {exc}"
        ) from exc


@lru_cache(maxsize=1)
def get_baseline_store() -> BaselineStore:
    return BaselineStore(get_settings().data_dir / "baselines")


__all__ = [
    "BaselineModel",
    "BaselineStore",
    "CURVE_LIE",
    "OffGreenPoint",
    "get_baseline_store",
]
