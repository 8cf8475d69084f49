import pytest

from teamsg.errors import DataUnavailableError
from teamsg.identity import MembershipDirectory


def test_team_ids_follow_linked_player(directory: MembershipDirectory) -> None:
    directory.link_user("user-1", "ann")
    directory.add_team_member("varsity", "ann")
    directory.add_team_member("jv", "ann")
    directory.add_team_member("jv", "bob")

    assert directory.player_for_user("user-1") == "ann"
    assert directory.team_ids_for_user("user-1") == frozenset({"varsity", "jv"})
    assert directory.team_ids_for_user("bob") == frozenset({"jv"})


def test_unknown_or_missing_user_has_no_teams(directory: MembershipDirectory) -> None:
    directory.add_team_member("varsity", "ann")
    assert directory.team_ids_for_user(None) == frozenset()
    assert directory.team_ids_for_user("stranger") == frozenset()


def test_memberships_persist(tmp_path) -> None:
    path = tmp_path / "members.json"
    first = MembershipDirectory(path)
    first.link_user("u", "ann")
    first.add_team_member("varsity", "ann")

    assert MembershipDirectory(path).team_ids_for_user("u") == frozenset({"varsity"})


def test_corrupt_directory_file(tmp_path) -> None:
    path = tmp_path / "members.json"
    path.write_text("nope", encoding="utf-8")
    with pytest.raises(DataUnavailableError):
        MembershipDirectory(path)
