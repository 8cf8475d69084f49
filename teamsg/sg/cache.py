"""Per-round strokes-gained result cache.

Entries are keyed by ``(round_id, model)`` and carry a fingerprint of the
round's shots and the model revision, so a shot resubmission or a curve
upload makes the stale entry unreachable without explicit invalidation.
"""

from __future__ import annotations

import hashlib
import json
import time
from collections import OrderedDict
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Iterable, NamedTuple, Optional, Tuple

from .schemas import RoundSG, Shot

CacheKey = Tuple[str, str]


class CacheStats(NamedTuple):
    hits: int
    misses: int
    size: int


@dataclass(frozen=True, slots=True)
class _Entry:
    fingerprint: str
    result: RoundSG
    stored_at: float


def shots_fingerprint(shots: Iterable[Shot], *, model_revision: int) -> str:
    canonical = sorted(
        (
            shot.hole_number,
            shot.sequence_number,
            shot.start_lie.value,
            float(shot.start_distance),
            shot.end_lie.value,
            float(shot.end_distance),
            bool(shot.is_putt),
            int(shot.penalty_strokes),
        )
        for shot in shots
    )
    raw = json.dumps([model_revision, canonical], separators=(",", ":"))
    return hashlib.sha1(raw.encode()).hexdigest()


class RoundSGCache:
    def __init__(
        self,
        maxsize: int = 256,
        ttl_seconds: float = 600.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._maxsize = max(1, int(maxsize))
        self._ttl = max(1.0, float(ttl_seconds))
        self._clock = clock
        self._entries: "OrderedDict[CacheKey, _Entry]" = OrderedDict()
        self._lock = Lock()
        self._hits = 0
        self._misses = 0

    def get(self, round_id: str, model: str, *, fingerprint: str) -> Optional[RoundSG]:
        key = (round_id, model)
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._clock() - entry.stored_at > self._ttl:
                del self._entries[key]
                entry = None
            if entry is None or entry.fingerprint != fingerprint:
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return entry.result

    def put(self, round_id: str, model: str, value: RoundSG, *, fingerprint: str) -> None:
        key = (round_id, model)
        with self._lock:
            self._entries[key] = _Entry(fingerprint, value, self._clock())
            self._entries.move_to_end(key)
            while len(self._entries) > self._maxsize:
                self._entries.popitem(last=False)

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(self._hits, self._misses, len(self._entries))

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = self._misses = 0


__all__ = ["CacheStats", "RoundSGCache", "shots_fingerprint"]
