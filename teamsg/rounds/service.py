from __future__ import annotations

import logging
import re
import time
import uuid
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any, Collection, Iterable, List, Mapping, Optional

from teamsg import telemetry
from teamsg.config import get_settings
from teamsg.errors import DataUnavailableError, RoundNotFound
from teamsg.metrics import SHOT_REPLACEMENTS
from teamsg.storage import locked, read_json, write_json_atomic

from .models import (
    HoleScore,
    NormalizedShots,
    Round,
    RoundRecord,
    RoundScores,
    RoundType,
    Shot,
)
from .normalize import RawObservation, normalize_shots

logger = logging.getLogger(__name__)

SAFE_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def _sanitize_id(value: str) -> str:
    """Restrict ids to filesystem-safe characters to prevent path traversal."""

    if not value or not SAFE_ID_RE.match(value):
        raise ValueError(f"Invalid id for filesystem usage: {value!r}")
    return value


class RoundService:
    """File-backed persistence for rounds, hole scores and shots.

    Each round lives in ``<base>/<round_id>/``. Shot replacement rewrites
    ``shots.json`` through a temp file under a per-round lock, so readers
    see either the previous or the new shot set, never a partial one.
    """

    def __init__(self, base_dir: Path | str | None = None):
        base = Path(base_dir or get_settings().data_dir / "rounds").expanduser()
        self._base_dir = base.resolve()

    # Round lifecycle
    def create_round(
        self,
        *,
        player_id: str,
        round_type: RoundType | str,
        player_name: str | None = None,
        team_id: str | None = None,
        team_name: str | None = None,
        course_name: str | None = None,
        created_at: datetime | None = None,
        round_id: str | None = None,
    ) -> Round:
        record = RoundRecord(
            id=_sanitize_id(round_id or str(uuid.uuid4())),
            player_id=player_id,
            player_name=player_name,
            team_id=team_id,
            team_name=team_name,
            course_name=course_name,
            round_type=RoundType(round_type),
            created_at=created_at or datetime.now(timezone.utc),
        )
        write_json_atomic(self._round_dir(record.id) / "round.json", record.to_dict())
        return record.to_round()

    def get_round(self, round_id: str) -> Round:
        return self._require_round(round_id).to_round()

    def list_round_records(
        self,
        *,
        round_type: RoundType | None = None,
        start: datetime | None = None,
        end_exclusive: datetime | None = None,
        team_ids: Collection[str] | None = None,
        player_id: str | None = None,
        limit: int | None = None,
    ) -> List[RoundRecord]:
        """Rounds matching every given filter, newest first."""

        if not self._base_dir.exists():
            return []

        records: list[RoundRecord] = []
        for round_dir in self._base_dir.iterdir():
            meta_path = round_dir / "round.json"
            if not meta_path.exists():
                continue
            try:
                record = RoundRecord.from_dict(read_json(meta_path))
            except (KeyError, ValueError) as exc:
                raise DataUnavailableError(
                    f"malformed round record {round_dir.name}: {exc}"
                ) from exc
            if round_type is not None and record.round_type is not round_type:
                continue
            if start is not None and record.created_at < start:
                continue
            if end_exclusive is not None and record.created_at >= end_exclusive:
                continue
            if team_ids is not None and record.team_id not in team_ids:
                continue
            if player_id is not None and record.player_id != player_id:
                continue
            records.append(record)

        records.sort(key=lambda r: r.created_at, reverse=True)
        if limit is not None:
            records = records[: max(0, limit)]
        return records

    # Shots
    def fetch_shots(self, round_id: str) -> List[Shot]:
        self._require_round(round_id)
        path = self._shots_path(round_id)
        if not path.exists():
            return []
        shots = [Shot.model_validate(item) for item in read_json(path)]
        shots.sort(key=lambda s: (s.hole_number, s.sequence_number))
        return shots

    def replace_shots(
        self, round_id: str, holes: Collection[int], shots: Iterable[Shot]
    ) -> int:
        """Delete the stored shots of ``holes`` and insert ``shots`` in one write."""

        touched = set(holes)
        incoming = list(shots)
        for shot in incoming:
            if shot.round_id != round_id:
                raise ValueError(f"shot belongs to round {shot.round_id!r}")
            if shot.hole_number not in touched:
                raise ValueError(f"shot on hole {shot.hole_number} outside touched holes")

        self._require_round(round_id)
        path = self._shots_path(round_id)
        with locked(self._round_dir(round_id) / ".shots.lock"):
            existing = (
                [Shot.model_validate(item) for item in read_json(path)]
                if path.exists()
                else []
            )
            kept = [shot for shot in existing if shot.hole_number not in touched]
            merged = sorted(
                kept + incoming, key=lambda s: (s.hole_number, s.sequence_number)
            )
            write_json_atomic(path, [shot.model_dump(mode="json") for shot in merged])
        return len(incoming)

    def submit_shots(
        self, round_id: str, observations: Iterable[RawObservation]
    ) -> NormalizedShots:
        """Validate observations and replace the shots of the holes they touch."""

        self._require_round(round_id)
        start = time.perf_counter()
        normalized = normalize_shots(round_id, observations)
        inserted = self.replace_shots(round_id, normalized.holes, normalized.shots)
        duration_ms = (time.perf_counter() - start) * 1000

        SHOT_REPLACEMENTS.inc()
        telemetry.record_shots_replaced(
            round_id, holes=normalized.holes, inserted=inserted, duration_ms=duration_ms
        )
        logger.info(
            "shots replaced",
            extra={"round_id": round_id, "holes": normalized.holes, "inserted": inserted},
        )
        return normalized

    # Scoring
    def get_scores(self, round_id: str) -> RoundScores:
        record = self._require_round(round_id)
        return self._read_scores(record)

    def upsert_hole_score(
        self, round_id: str, hole_number: int, updates: Mapping[str, Any]
    ) -> RoundScores:
        if hole_number < 1 or hole_number > 18:
            raise ValueError("hole_number must be between 1 and 18")

        record = self._require_round(round_id)
        with locked(self._round_dir(round_id) / ".scores.lock"):
            scores = self._read_scores(record)
            existing = scores.holes.get(hole_number)
            merged = existing.model_dump(exclude_none=False) if existing else {}
            merged.update(updates)
            merged["hole_number"] = hole_number
            scores.holes[hole_number] = HoleScore(**merged)
            self._write_scores(scores)
        return scores

    # Internal helpers
    def _round_dir(self, round_id: str) -> Path:
        return self._base_dir / _sanitize_id(round_id)

    def _shots_path(self, round_id: str) -> Path:
        return self._round_dir(round_id) / "shots.json"

    def _load_round(self, round_id: str) -> Optional[RoundRecord]:
        meta_path = self._round_dir(round_id) / "round.json"
        if not meta_path.exists():
            return None
        try:
            return RoundRecord.from_dict(read_json(meta_path))
        except (KeyError, ValueError) as exc:
            raise DataUnavailableError(f"malformed round record {round_id}: {exc}") from exc

    def _require_round(self, round_id: str) -> RoundRecord:
        try:
            record = self._load_round(round_id)
        except ValueError:
            record = None
        if record is None:
            raise RoundNotFound(round_id)
        return record

    def _read_scores(self, record: RoundRecord) -> RoundScores:
        path = self._round_dir(record.id) / "scores.json"
        holes: dict[int, HoleScore] = {}
        if path.exists():
            data = read_json(path)
            try:
                for hole_key, hole_payload in data.get("holes", {}).items():
                    payload = dict(hole_payload or {})
                    payload.setdefault("hole_number", int(hole_key))
                    holes[int(hole_key)] = HoleScore.model_validate(payload)
            except (AttributeError, ValueError) as exc:
                raise DataUnavailableError(
                    f"malformed scores for round {record.id}: {exc}"
                ) from exc
        return RoundScores(round_id=record.id, player_id=record.player_id, holes=holes)

    def _write_scores(self, scores: RoundScores) -> None:
        payload = {
            "round_id": scores.round_id,
            "player_id": scores.player_id,
            "holes": {
                str(hole): hole_score.model_dump(exclude_none=True)
                for hole, hole_score in scores.holes.items()
            },
        }
        write_json_atomic(self._round_dir(scores.round_id) / "scores.json", payload)


@lru_cache(maxsize=1)
def get_round_service() -> RoundService:
    return RoundService()


__all__ = ["RoundService", "get_round_service"]
