"""Identity collaborator: maps acting users to players and team memberships."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from threading import RLock
from typing import Dict, FrozenSet, Optional, Set

from teamsg.config import get_settings
from teamsg.storage import read_json, write_json_atomic

logger = logging.getLogger(__name__)


class MembershipDirectory:
    """JSON-backed user/team directory.

    ``users`` maps a user id to the player it acts as; ``teams`` maps a team
    id to its member player ids. Without a path the directory is in memory.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self._path = Path(path).expanduser() if path else None
        self._lock = RLock()
        self._users: Dict[str, str] = {}
        self._teams: Dict[str, Set[str]] = {}
        self._load()

    def link_user(self, user_id: str, player_id: str) -> None:
        with self._lock:
            self._users[user_id] = player_id
            self._save()

    def add_team_member(self, team_id: str, player_id: str) -> None:
        with self._lock:
            self._teams.setdefault(team_id, set()).add(player_id)
            self._save()

    def player_for_user(self, user_id: str) -> Optional[str]:
        with self._lock:
            return self._users.get(user_id)

    def team_ids_for_user(self, user_id: str | None) -> FrozenSet[str]:
        """Teams the user's player belongs to; unknown users have none."""

        if not user_id:
            return frozenset()
        with self._lock:
            player_id = self._users.get(user_id, user_id)
            return frozenset(
                team_id for team_id, members in self._teams.items() if player_id in members
            )

    def _load(self) -> None:
        if self._path is None or not self._path.exists():
            return
        data = read_json(self._path)
        self._users = {str(k): str(v) for k, v in (data.get("users") or {}).items()}
        self._teams = {
            str(team): {str(member) for member in members}
            for team, members in (data.get("teams") or {}).items()
        }

    def _save(self) -> None:
        if self._path is None:
            return
        payload = {
            "users": self._users,
            "teams": {team: sorted(members) for team, members in self._teams.items()},
        }
        write_json_atomic(self._path, payload)
        logger.debug("memberships saved", extra={"teams": len(self._teams)})


@lru_cache(maxsize=1)
def get_membership_directory() -> MembershipDirectory:
    return MembershipDirectory(get_settings().data_dir / "memberships.json")


__all__ = ["MembershipDirectory", "get_membership_directory"]
