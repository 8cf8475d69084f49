"""Shared pytest fixtures for teamsg tests."""

from __future__ import annotations

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from teamsg.app import app
from teamsg.config import reset_settings_cache
from teamsg.identity import MembershipDirectory, get_membership_directory
from teamsg.leaderboard import LeaderboardService, get_leaderboard_service
from teamsg.reporting import RoundReporter, get_round_reporter
from teamsg.rounds.service import RoundService, get_round_service
from teamsg.sg.curves import TEMPLATE_OFF_GREEN, TEMPLATE_PUTTING
from teamsg.sg.schemas import CurveKind
from teamsg.sg.store import BaselineStore, get_baseline_store

ADMIN_TOKEN = "admin-secret-1234"

# Small hand-checkable model used by most SG assertions.
SIMPLE_PUTTING = [(1.0, 1.00), (5.0, 1.25), (10.0, 1.68)]
SIMPLE_OFF_GREEN = [
    ("Tee", 150.0, 2.9),
    ("Tee", 250.0, 3.3),
    ("Fairway", 50.0, 2.0),
    ("Fairway", 150.0, 3.0),
    ("Rough", 50.0, 2.5),
    ("Rough", 150.0, 3.5),
    ("Sand", 10.0, 2.4),
    ("Sand", 40.0, 2.6),
    ("Recovery", 20.0, 2.5),
    ("Recovery", 40.0, 2.7),
]


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    monkeypatch.setenv("TEAMSG_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("REQUIRE_API_KEY", raising=False)
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def store(tmp_path) -> BaselineStore:
    baselines = BaselineStore(tmp_path / "baselines", default_threshold_yd=30.0)
    baselines.replace_curve("simple", CurveKind.PUTTING, SIMPLE_PUTTING)
    baselines.replace_curve("simple", CurveKind.OFF_GREEN, SIMPLE_OFF_GREEN)
    baselines.replace_curve("template", CurveKind.PUTTING, TEMPLATE_PUTTING)
    baselines.replace_curve(
        "template",
        CurveKind.OFF_GREEN,
        [
            (lie, distance, expected)
            for lie, points in TEMPLATE_OFF_GREEN.items()
            for distance, expected in points
        ],
    )
    return baselines


@pytest.fixture
def rounds(tmp_path) -> RoundService:
    return RoundService(base_dir=tmp_path / "rounds")


@pytest.fixture
def reporter(rounds, store) -> RoundReporter:
    return RoundReporter(rounds, store)


@pytest.fixture
def directory(tmp_path) -> MembershipDirectory:
    return MembershipDirectory(tmp_path / "memberships.json")


@pytest.fixture
def make_round(rounds):
    """Create a round with optional hole scores and shot observations."""

    def _make(
        player_id: str,
        *,
        created_at: datetime,
        round_type: str = "TOURNAMENT",
        team_id: str | None = "team-a",
        scores: dict[int, dict] | None = None,
        shots: list[dict] | None = None,
        player_name: str | None = None,
    ) -> str:
        created = rounds.create_round(
            player_id=player_id,
            player_name=player_name or player_id.title(),
            team_id=team_id,
            team_name=team_id.upper() if team_id else None,
            round_type=round_type,
            created_at=created_at,
        )
        for hole, values in (scores or {}).items():
            rounds.upsert_hole_score(created.id, hole, values)
        if shots:
            rounds.submit_shots(created.id, shots)
        return created.id

    return _make


@pytest.fixture
def api_client(monkeypatch, store, rounds, reporter, directory):
    monkeypatch.setenv("ADMIN_TOKEN", ADMIN_TOKEN)
    leaderboard = LeaderboardService(reporter)
    app.dependency_overrides[get_baseline_store] = lambda: store
    app.dependency_overrides[get_round_service] = lambda: rounds
    app.dependency_overrides[get_round_reporter] = lambda: reporter
    app.dependency_overrides[get_leaderboard_service] = lambda: leaderboard
    app.dependency_overrides[get_membership_directory] = lambda: directory
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()



@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"x-admin-token": ADMIN_TOKEN}
