"""Telemetry hooks for shot submission, SG computation and leaderboards."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Mapping, MutableMapping, Optional

TelemetryEmitter = Callable[[str, Mapping[str, object]], None]

_emitter: Optional[TelemetryEmitter] = None
_logger = logging.getLogger("teamsg.telemetry")


def set_telemetry_emitter(candidate: TelemetryEmitter | None) -> None:
    """Register a telemetry emitter; ``None`` disables emission."""

    global _emitter
    _emitter = candidate if callable(candidate) else None


def _safe_emit(event: str, payload: MutableMapping[str, object]) -> None:
    if not _emitter:
        _logger.debug("telemetry emitter not configured for event %s", event)
        return
    try:
        _emitter(event, dict(payload))
    except Exception:  # pragma: no cover - emitter failures never break requests
        _logger.exception("failed to emit telemetry event %s", event)


def record_shots_replaced(
    round_id: str, *, holes: Iterable[int], inserted: int, duration_ms: float
) -> None:
    payload: Dict[str, object] = {
        "roundId": round_id,
        "holes": sorted(holes),
        "inserted": int(inserted),
        "durationMs": int(max(0, round(duration_ms))),
        "ts": _now_ms(),
    }
    _safe_emit("shots.replace", payload)


def record_round_sg(
    round_id: str, model: str, *, shots: int, cached: bool, duration_ms: float
) -> None:
    payload: Dict[str, object] = {
        "roundId": round_id,
        "model": model,
        "shots": int(shots),
        "cached": bool(cached),
        "durationMs": int(max(0, round(duration_ms))),
        "ts": _now_ms(),
    }
    _safe_emit("sg.round", payload)


def record_leaderboard_build(
    *, scope: str, round_type: str, rows: int, players: int, duration_ms: float
) -> None:
    payload: Dict[str, object] = {
        "scope": scope,
        "roundType": round_type,
        "rows": int(rows),
        "players": int(players),
        "durationMs": int(max(0, round(duration_ms))),
        "ts": _now_ms(),
    }
    _safe_emit("leaderboard.build_ms", payload)


def record_data_unavailable(source: str, *, attempt: int, error: str) -> None:
    payload: Dict[str, object] = {
        "source": source,
        "attempt": int(attempt),
        "error": error,
        "ts": _now_ms(),
    }
    _safe_emit("data.unavailable", payload)


def _now_ms() -> int:
    from time import time

    return int(time() * 1000)


__all__ = [
    "set_telemetry_emitter",
    "record_shots_replaced",
    "record_round_sg",
    "record_leaderboard_build",
    "record_data_unavailable",
]
