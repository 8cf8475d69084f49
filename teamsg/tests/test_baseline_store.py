import json

import pytest

from teamsg.errors import DataUnavailableError, IncompleteModelError, ModelNotFoundError
from teamsg.sg.schemas import CurveKind, Lie
from teamsg.sg.store import BaselineStore


def test_hole_lookup_is_zero_without_curves(tmp_path) -> None:
    store = BaselineStore(tmp_path)
    assert store.lookup("anything", Lie.HOLE, 12.0) == 0.0


def test_green_uses_putting_curve_in_feet(store) -> None:
    assert store.lookup("simple", "Green", 5.0) == pytest.approx(1.25)
    assert store.lookup("simple", Lie.GREEN, 8.0) == pytest.approx(1.508)


def test_off_green_lookup_by_lie_and_yards(store) -> None:
    assert store.lookup("simple", Lie.FAIRWAY, 100.0) == pytest.approx(2.5)
    assert store.lookup("simple", Lie.ROUGH, 100.0) == pytest.approx(3.0)


@pytest.mark.parametrize("lie", [Lie.PENALTY, Lie.OTHER])
def test_penalty_and_other_read_the_rough_curve(store, lie: Lie) -> None:
    assert store.lookup("simple", lie, 90.0) == store.lookup("simple", Lie.ROUGH, 90.0)


def test_unknown_model_raises(store) -> None:
    with pytest.raises(ModelNotFoundError) as excinfo:
        store.lookup("missing", Lie.FAIRWAY, 100.0)
    assert excinfo.value.model == "missing"


def test_missing_lie_points_raise_incomplete_model(tmp_path) -> None:
    store = BaselineStore(tmp_path)
    store.replace_curve("partial", CurveKind.PUTTING, [(1, 1.0), (10, 1.7)])
    store.replace_curve("partial", CurveKind.OFF_GREEN, [("Fairway", 100, 2.8)])

    with pytest.raises(IncompleteModelError) as excinfo:
        store.lookup("partial", Lie.SAND, 20.0)
    assert excinfo.value.lie == "Sand"

    with pytest.raises(IncompleteModelError) as excinfo:
        store.lookup("partial", Lie.PENALTY, 20.0)
    assert excinfo.value.lie == "Rough"


def test_replace_drops_previous_points_merge_keeps_them(tmp_path) -> None:
    store = BaselineStore(tmp_path)
    store.replace_curve(
        "m", CurveKind.OFF_GREEN, [("Fairway", 50, 2.2), ("Sand", 20, 2.4)]
    )
    store.merge_curve("m", CurveKind.OFF_GREEN, [{"lie": "Fairway", "dist_yd": 150, "exp_strokes": 2.9}])
    summary = store.describe("m")
    assert summary["offGreenPoints"] == {"Fairway": 2, "Sand": 1}

    store.replace_curve("m", CurveKind.OFF_GREEN, [("Rough", 100, 3.0)])
    assert store.describe("m")["offGreenPoints"] == {"Rough": 1}
    with pytest.raises(IncompleteModelError):
        store.lookup("m", Lie.SAND, 20.0)


def test_off_green_upload_rejects_green_lie(tmp_path) -> None:
    store = BaselineStore(tmp_path)
    with pytest.raises(ValueError):
        store.replace_curve("m", CurveKind.OFF_GREEN, [("Green", 10, 1.5)])
    assert store.list_models() == []


def test_invalid_upload_leaves_model_untouched(store) -> None:
    revision = store.revision("simple")
    with pytest.raises(ValueError):
        store.replace_curve("simple", CurveKind.PUTTING, [(3, 1.1), (3, 1.2)])
    assert store.revision("simple") == revision
    assert store.lookup("simple", Lie.GREEN, 5.0) == pytest.approx(1.25)


def test_invalid_model_name_rejected(tmp_path) -> None:
    store = BaselineStore(tmp_path)
    with pytest.raises(ValueError):
        store.replace_curve("../escape", CurveKind.PUTTING, [(1, 1.0)])


def test_revision_bumps_on_every_write(tmp_path) -> None:
    store = BaselineStore(tmp_path)
    store.replace_curve("m", CurveKind.PUTTING, [(1, 1.0)])
    first = store.revision("m")
    store.merge_curve("m", CurveKind.PUTTING, [(5, 1.25)])
    store.set_short_game_threshold("m", 40)
    assert store.revision("m") == first + 2


def test_threshold_defaults_and_updates(tmp_path) -> None:
    store = BaselineStore(tmp_path, default_threshold_yd=25.0)
    store.replace_curve("m", CurveKind.PUTTING, [(1, 1.0)])
    assert store.short_game_threshold("m") == 25.0

    store.set_short_game_threshold("m", 35.0)
    assert store.short_game_threshold("m") == 35.0

    with pytest.raises(ValueError):
        store.set_short_game_threshold("m", 0)
    with pytest.raises(ModelNotFoundError):
        store.set_short_game_threshold("other", 30)


def test_models_persist_across_instances(tmp_path) -> None:
    store = BaselineStore(tmp_path)
    store.replace_curve("club", CurveKind.PUTTING, [(1, 1.0), (10, 1.7)])
    store.set_short_game_threshold("club", 20)

    reloaded = BaselineStore(tmp_path)
    assert reloaded.list_models() == ["club"]
    assert reloaded.short_game_threshold("club") == 20
    assert reloaded.lookup("club", Lie.GREEN, 10) == pytest.approx(1.7)
    assert reloaded.revision("club") == store.revision("club")


def test_corrupt_model_file_is_data_unavailable(tmp_path) -> None:
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(DataUnavailableError):
        BaselineStore(tmp_path)


def test_persisted_layout(tmp_path) -> None:
    store = BaselineStore(tmp_path)
    store.replace_curve("m", CurveKind.OFF_GREEN, [("Tee", 250, 3.9)])
    data = json.loads((tmp_path / "m.json").read_text(encoding="utf-8"))
    assert data["off_green"] == {"Tee": [[250.0, 3.9]]}
    assert data["putting"] == []


def test_stores_sharing_a_directory_keep_each_others_curves(tmp_path) -> None:
    first = BaselineStore(tmp_path)
    second = BaselineStore(tmp_path)

    first.replace_curve("pga", CurveKind.PUTTING, [(1, 1.0), (10, 1.7)])
    second.replace_curve("pga", CurveKind.OFF_GREEN, [("Fairway", 100, 2.8)])
    first.set_short_game_threshold("pga", 25)

    reloaded = BaselineStore(tmp_path)
    described = reloaded.describe("pga")
    assert described["puttingPoints"] == 2
    assert described["offGreenPoints"] == {"Fairway": 1}
    assert described["shortGameThresholdYd"] == 25
    assert described["revision"] == 3
    assert reloaded.lookup("pga", Lie.GREEN, 10) == pytest.approx(1.7)
    assert reloaded.lookup("pga", Lie.FAIRWAY, 100) == pytest.approx(2.8)


def test_merge_builds_on_curve_written_by_another_store(tmp_path) -> None:
    BaselineStore(tmp_path).replace_curve("pga", CurveKind.PUTTING, [(1, 1.0)])
    writer = BaselineStore(tmp_path)

    BaselineStore(tmp_path).merge_curve("pga", CurveKind.PUTTING, [(10, 1.7)])
    writer.merge_curve("pga", CurveKind.PUTTING, [(20, 2.0)])

    assert BaselineStore(tmp_path).describe("pga")["puttingPoints"] == 3
    assert not list(tmp_path.glob("*.tmp"))
