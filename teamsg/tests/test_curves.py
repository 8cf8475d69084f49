import pytest

from teamsg.sg.curves import (
    TEMPLATE_OFF_GREEN,
    TEMPLATE_PUTTING,
    interpolate,
    merge_points,
    prepare_points,
)

POINTS = [(1.0, 1.00), (5.0, 1.25), (10.0, 1.68)]


@pytest.mark.parametrize("distance, expected", POINTS)
def test_breakpoint_returns_exact_value(distance: float, expected: float) -> None:
    assert interpolate(POINTS, distance) == expected


def test_interpolates_between_bracketing_points() -> None:
    assert interpolate(POINTS, 8.0) == pytest.approx(1.25 + 0.6 * 0.43)
    assert interpolate(POINTS, 3.0) == pytest.approx(1.125)


def test_clamps_outside_recorded_range() -> None:
    assert interpolate(POINTS, 0.0) == 1.00
    assert interpolate(POINTS, 45.0) == 1.68
    assert interpolate(POINTS, 1e6) == 1.68


def test_empty_curve_is_rejected() -> None:
    with pytest.raises(ValueError):
        interpolate([], 3.0)


def test_prepare_points_sorts_uploads() -> None:
    prepared = prepare_points([(10, 1.68), (1, 1.0), (5, 1.25)])
    assert prepared == POINTS


def test_prepare_points_rejects_duplicates_and_bad_values() -> None:
    with pytest.raises(ValueError, match="strictly increasing"):
        prepare_points([(5, 1.25), (5, 1.3)])
    with pytest.raises(ValueError):
        prepare_points([(5, 0.0)])
    with pytest.raises(ValueError):
        prepare_points([(-1, 1.0)])


def test_merge_points_upserts_by_distance() -> None:
    merged = merge_points(POINTS, [(5.0, 1.30), (20.0, 2.03)])
    assert merged == [(1.0, 1.00), (5.0, 1.30), (10.0, 1.68), (20.0, 2.03)]


@pytest.mark.parametrize(
    "curve",
    [TEMPLATE_PUTTING, *TEMPLATE_OFF_GREEN.values()],
)
def test_templates_are_valid_and_non_decreasing(curve) -> None:
    prepared = prepare_points(curve)
    values = [expected for _, expected in prepared]
    assert values == sorted(values)
