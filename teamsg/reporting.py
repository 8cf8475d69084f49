"""Round reporting: joins rounds, hole scores, shots and SG into rows.

The reporter is the read side used by the aggregator and the leaderboard.
Row fetches run under a timeout; a timeout or store failure surfaces as
``DataUnavailableError`` and is retried a bounded number of times.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from datetime import time as dt_time
from functools import lru_cache
from threading import Event
from typing import FrozenSet, List, NamedTuple, Optional

from teamsg import telemetry
from teamsg.config import get_settings
from teamsg.errors import ComputationCancelled, DataUnavailableError
from teamsg.metrics import SG_CACHE, SG_COMPUTATIONS
from teamsg.rounds.aggregate import SG_FIELDS, aggregate_round, score_totals
from teamsg.rounds.models import RoundRecord, RoundRow, RoundTotals, RoundType
from teamsg.rounds.service import RoundService, get_round_service
from teamsg.sg.cache import RoundSGCache, shots_fingerprint
from teamsg.sg.engine import compute_round_sg
from teamsg.sg.schemas import RoundSG, Shot
from teamsg.sg.store import BaselineStore, get_baseline_store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoundFilters:
    round_type: Optional[RoundType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    team_ids: Optional[FrozenSet[str]] = None
    player_id: Optional[str] = None
    limit: Optional[int] = None

    def start_bound(self) -> Optional[datetime]:
        if self.start_date is None:
            return None
        return datetime.combine(self.start_date, dt_time.min, tzinfo=timezone.utc)

    def end_bound(self) -> Optional[datetime]:
        """Exclusive upper bound: the end date counts through end of day."""

        if self.end_date is None:
            return None
        return datetime.combine(
            self.end_date + timedelta(days=1), dt_time.min, tzinfo=timezone.utc
        )


class RoundRowBatch(NamedTuple):
    rows: List[RoundRow]
    truncated: bool = False


def _check_cancel(cancel: Event | None, what: str) -> None:
    if cancel is not None and cancel.is_set():
        raise ComputationCancelled(what)


class RoundReporter:
    def __init__(
        self,
        rounds: RoundService,
        store: BaselineStore,
        *,
        cache: RoundSGCache | None = None,
    ) -> None:
        self._rounds = rounds
        self._store = store
        self._cache = cache if cache is not None else RoundSGCache()

    @property
    def cache(self) -> RoundSGCache:
        return self._cache

    def round_sg(
        self,
        round_id: str,
        model: str,
        *,
        shots: List[Shot] | None = None,
        cancel: Event | None = None,
    ) -> RoundSG:
        """Strokes gained for one round, served from cache when unchanged."""

        if shots is None:
            shots = self._rounds.fetch_shots(round_id)
        fingerprint = shots_fingerprint(shots, model_revision=self._store.revision(model))

        start = time.perf_counter()
        cached = self._cache.get(round_id, model, fingerprint=fingerprint)
        SG_CACHE.labels(result="hit" if cached is not None else "miss").inc()
        if cached is not None:
            SG_COMPUTATIONS.labels(model=model, outcome="cached").inc()
            telemetry.record_round_sg(
                round_id, model, shots=len(shots), cached=True, duration_ms=0
            )
            return cached

        try:
            result = compute_round_sg(round_id, shots, model, self._store, cancel=cancel)
        except Exception:
            SG_COMPUTATIONS.labels(model=model, outcome="error").inc()
            raise
        self._cache.put(round_id, model, result, fingerprint=fingerprint)

        SG_COMPUTATIONS.labels(model=model, outcome="computed").inc()
        telemetry.record_round_sg(
            round_id,
            model,
            shots=len(shots),
            cached=False,
            duration_ms=(time.perf_counter() - start) * 1000,
        )
        return result

    def round_totals(
        self, round_id: str, model: str, *, round_sg: RoundSG | None = None
    ) -> RoundTotals:
        """Totals for one round; pass ``round_sg`` when it is already computed."""

        round_info = self._rounds.get_round(round_id)
        if round_sg is None:
            round_sg = self.round_sg(round_id, model)
        scores = self._rounds.get_scores(round_id)
        return aggregate_round(round_sg, scores, player_id=round_info.player_id)

    def round_batch(
        self, filters: RoundFilters, model: str, *, cancel: Event | None = None
    ) -> RoundRowBatch:
        """One row per qualifying round that has hole scores or shots.

        ``truncated`` is set when ``filters.limit`` cut off matching rounds,
        counted before rounds without data are dropped.
        """

        # Fails fast with ModelNotFoundError before touching any round.
        self._store.revision(model)

        limit = filters.limit
        records = self._rounds.list_round_records(
            round_type=filters.round_type,
            start=filters.start_bound(),
            end_exclusive=filters.end_bound(),
            team_ids=filters.team_ids,
            player_id=filters.player_id,
            limit=None if limit is None else max(0, limit) + 1,
        )
        truncated = limit is not None and len(records) > limit
        if truncated:
            records = records[: max(0, limit)]

        rows: List[RoundRow] = []
        for record in records:
            _check_cancel(cancel, "round row fetch")
            row = self._build_row(record, model, cancel=cancel)
            if row is not None:
                rows.append(row)
        return RoundRowBatch(rows, truncated)

    def round_rows(
        self, filters: RoundFilters, model: str, *, cancel: Event | None = None
    ) -> List[RoundRow]:
        return self.round_batch(filters, model, cancel=cancel).rows

    def fetch_round_rows(
        self,
        filters: RoundFilters,
        model: str,
        *,
        timeout_s: float | None = None,
        retries: int | None = None,
    ) -> List[RoundRow]:
        return self.fetch_round_batch(
            filters, model, timeout_s=timeout_s, retries=retries
        ).rows

    def fetch_round_batch(
        self,
        filters: RoundFilters,
        model: str,
        *,
        timeout_s: float | None = None,
        retries: int | None = None,
    ) -> RoundRowBatch:
        """``round_batch`` under a timeout, retrying data-unavailable failures."""

        settings = get_settings()
        timeout = timeout_s if timeout_s is not None else settings.fetch_timeout_s
        attempts = 1 + max(0, retries if retries is not None else settings.fetch_retries)

        for attempt in range(1, attempts + 1):
            try:
                return self._fetch_once(filters, model, timeout)
            except DataUnavailableError as exc:
                telemetry.record_data_unavailable(
                    "round_rows", attempt=attempt, error=str(exc)
                )
                logger.warning(
                    "round rows unavailable",
                    extra={"attempt": attempt, "attempts": attempts, "error": str(exc)},
                )
                if attempt == attempts:
                    raise
        raise DataUnavailableError("round rows unavailable")

    def _fetch_once(
        self, filters: RoundFilters, model: str, timeout: float
    ) -> RoundRowBatch:
        cancel = Event()
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="round-rows")
        try:
            future = executor.submit(self.round_batch, filters, model, cancel=cancel)
            try:
                return future.result(timeout=timeout)
            except FutureTimeout as exc:
                cancel.set()
                raise DataUnavailableError(
                    f"round rows not available within {timeout:.1f}s"
                ) from exc
            except OSError as exc:
                raise DataUnavailableError(f"round store failure: {exc}") from exc
        finally:
            executor.shutdown(wait=False)

    def _build_row(
        self, record: RoundRecord, model: str, *, cancel: Event | None
    ) -> Optional[RoundRow]:
        shots = self._rounds.fetch_shots(record.id)
        scores = self._rounds.get_scores(record.id)
        totals = score_totals(scores)
        if not shots and totals.holes_played == 0:
            return None

        sg_values: dict[str, Optional[float]] = {column: None for column in SG_FIELDS.values()}
        sg_total: Optional[float] = None
        if shots:
            round_sg = self.round_sg(record.id, model, shots=shots, cancel=cancel)
            sg_total = round_sg.sg_total
            for category, column in SG_FIELDS.items():
                sg_values[column] = round_sg.sg_by_cat[category]

        return RoundRow(
            round_id=record.id,
            created_at=record.created_at,
            round_type=record.round_type,
            player_id=record.player_id,
            player_name=record.player_name,
            team_id=record.team_id,
            team_name=record.team_name,
            strokes=totals.strokes,
            par_total=totals.par,
            to_par=totals.to_par,
            putts=totals.putts,
            fir_hits=totals.fir_hits,
            fir_opps=totals.fir_opps,
            gir_hits=totals.gir_hits,
            gir_opps=totals.gir_opps,
            holes_played=totals.holes_played,
            shot_count=len(shots),
            sg_total=sg_total,
            **sg_values,
        )


@lru_cache(maxsize=1)
def get_round_reporter() -> RoundReporter:
    return RoundReporter(get_round_service(), get_baseline_store())


__all__ = ["RoundFilters", "RoundReporter", "RoundRowBatch", "get_round_reporter"]
