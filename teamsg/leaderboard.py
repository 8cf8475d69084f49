"""Per-player leaderboard built from round rows."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from teamsg import telemetry
from teamsg.config import get_settings
from teamsg.metrics import LEADERBOARD_BUILD_SECONDS
from teamsg.reporting import RoundFilters, RoundReporter, get_round_reporter
from teamsg.rounds.aggregate import SG_FIELDS
from teamsg.rounds.models import RoundRow, RoundType

logger = logging.getLogger(__name__)

# Stands in for a missing SG average so those players sort last.
_MISSING_SG = float("-inf")


class Scope(str, Enum):
    TEAM = "team"
    ALL = "all"


class LeaderboardQuery(BaseModel):
    scope: Scope = Scope.ALL
    round_type: RoundType
    start_date: date
    end_date: date
    # Only read for scope=team; resolved from the caller's memberships.
    team_ids: FrozenSet[str] = frozenset()

    model_config = ConfigDict(frozen=True)

    @classmethod
    def with_defaults(
        cls,
        *,
        round_type: RoundType,
        scope: Scope = Scope.ALL,
        start_date: date | None = None,
        end_date: date | None = None,
        team_ids: Iterable[str] = (),
        today: date | None = None,
    ) -> "LeaderboardQuery":
        today = today or datetime.now(timezone.utc).date()
        end = end_date or today
        start = start_date or (
            end - timedelta(days=get_settings().leaderboard_default_days)
        )
        if start > end:
            raise ValueError("start date must not be after end date")
        return cls(
            scope=scope,
            round_type=round_type,
            start_date=start,
            end_date=end,
            team_ids=frozenset(team_ids),
        )

    def filters(self, limit: int | None = None) -> RoundFilters:
        return RoundFilters(
            round_type=self.round_type,
            start_date=self.start_date,
            end_date=self.end_date,
            team_ids=self.team_ids if self.scope is Scope.TEAM else None,
            limit=limit,
        )


class LeaderboardRow(BaseModel):
    position: int
    player_id: str = Field(serialization_alias="playerId")
    player_name: Optional[str] = Field(default=None, serialization_alias="playerName")
    team_id: Optional[str] = Field(default=None, serialization_alias="teamId")
    team_name: Optional[str] = Field(default=None, serialization_alias="teamName")
    rounds_played: int = Field(serialization_alias="roundsPlayed")
    total_to_par: int = Field(serialization_alias="totalToPar")
    avg_to_par: float = Field(serialization_alias="avgToPar")
    avg_sg_total: Optional[float] = Field(default=None, serialization_alias="avgSgTotal")
    avg_sg_ott: Optional[float] = Field(default=None, serialization_alias="avgSgOtt")
    avg_sg_app: Optional[float] = Field(default=None, serialization_alias="avgSgApp")
    avg_sg_arg: Optional[float] = Field(default=None, serialization_alias="avgSgArg")
    avg_sg_putt: Optional[float] = Field(default=None, serialization_alias="avgSgPutt")
    best_round_to_par: Optional[int] = Field(
        default=None, serialization_alias="bestRoundToPar"
    )
    last_played: Optional[datetime] = Field(default=None, serialization_alias="lastPlayed")

    model_config = ConfigDict(populate_by_name=True)


_SG_COLUMNS = ("sg_total",) + tuple(SG_FIELDS.values())


@dataclass
class _PlayerTally:
    player_name: str | None = None
    team_id: str | None = None
    team_name: str | None = None
    rounds: int = 0
    total_to_par: int = 0
    best_to_par: int | None = None
    last_played: datetime | None = None
    sg_sums: Dict[str, float] = field(default_factory=dict)
    sg_counts: Dict[str, int] = field(default_factory=dict)

    def add(self, row: RoundRow) -> None:
        self.rounds += 1
        # Rounds without a to-par still count as played and add zero.
        self.total_to_par += row.to_par or 0
        if row.to_par is not None and (
            self.best_to_par is None or row.to_par < self.best_to_par
        ):
            self.best_to_par = row.to_par
        if row.created_at is not None and (
            self.last_played is None or row.created_at > self.last_played
        ):
            self.last_played = row.created_at
            self.player_name = row.player_name or self.player_name
            self.team_id = row.team_id or self.team_id
            self.team_name = row.team_name or self.team_name
        else:
            self.player_name = self.player_name or row.player_name
            self.team_id = self.team_id or row.team_id
            self.team_name = self.team_name or row.team_name
        for column in _SG_COLUMNS:
            value = getattr(row, column)
            if value is None:
                continue
            self.sg_sums[column] = self.sg_sums.get(column, 0.0) + value
            self.sg_counts[column] = self.sg_counts.get(column, 0) + 1

    def average(self, column: str) -> float | None:
        count = self.sg_counts.get(column, 0)
        if not count:
            return None
        return self.sg_sums[column] / count


def _sort_key(row: LeaderboardRow) -> Tuple[Any, ...]:
    sg_total = row.avg_sg_total if row.avg_sg_total is not None else _MISSING_SG
    return (-sg_total, -row.rounds_played, row.avg_to_par)


def rank_players(rows: Iterable[RoundRow]) -> List[LeaderboardRow]:
    """Group round rows by player and rank them.

    Order: average SG total descending (missing last), then rounds played
    descending, then average to-par ascending. Full ties keep their grouping
    order and still get distinct consecutive positions.
    """

    tallies: Dict[str, _PlayerTally] = {}
    for row in rows:
        if not row.player_id:
            continue
        tallies.setdefault(row.player_id, _PlayerTally()).add(row)

    unranked: List[LeaderboardRow] = []
    for player_id, tally in tallies.items():
        unranked.append(
            LeaderboardRow(
                position=0,
                player_id=player_id,
                player_name=tally.player_name,
                team_id=tally.team_id,
                team_name=tally.team_name,
                rounds_played=tally.rounds,
                total_to_par=tally.total_to_par,
                avg_to_par=tally.total_to_par / tally.rounds,
                avg_sg_total=tally.average("sg_total"),
                avg_sg_ott=tally.average("sg_ott"),
                avg_sg_app=tally.average("sg_app"),
                avg_sg_arg=tally.average("sg_arg"),
                avg_sg_putt=tally.average("sg_putt"),
                best_round_to_par=tally.best_to_par,
                last_played=tally.last_played,
            )
        )

    unranked.sort(key=_sort_key)
    return [
        row.model_copy(update={"position": index})
        for index, row in enumerate(unranked, start=1)
    ]


class LeaderboardService:
    def __init__(
        self, reporter: RoundReporter, *, max_rows: int | None = None
    ) -> None:
        self._reporter = reporter
        self._max_rows = (
            max_rows if max_rows is not None else get_settings().leaderboard_max_rows
        )

    def build(self, query: LeaderboardQuery, model: str) -> List[LeaderboardRow]:
        """Ranked rows for ``query``; an empty team scope yields an empty list."""

        if query.scope is Scope.TEAM and not query.team_ids:
            logger.info("leaderboard scope has no teams", extra={"model": model})
            return []

        start = time.perf_counter()
        batch = self._reporter.fetch_round_batch(query.filters(self._max_rows), model)
        rows = batch.rows
        ranked = rank_players(rows)
        duration = time.perf_counter() - start

        LEADERBOARD_BUILD_SECONDS.labels(scope=query.scope.value).observe(duration)
        telemetry.record_leaderboard_build(
            scope=query.scope.value,
            round_type=query.round_type.value,
            rows=len(rows),
            players=len(ranked),
            duration_ms=duration * 1000,
        )
        if batch.truncated:
            logger.warning(
                "leaderboard row cap reached",
                extra={"model": model, "max_rows": self._max_rows},
            )
        return ranked


@lru_cache(maxsize=1)
def get_leaderboard_service() -> LeaderboardService:
    return LeaderboardService(get_round_reporter())


__all__ = [
    "LeaderboardQuery",
    "LeaderboardRow",
    "LeaderboardService",
    "Scope",
    "get_leaderboard_service",
    "rank_players",
]
