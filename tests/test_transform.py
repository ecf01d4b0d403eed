import math

import pytest

from racing_line.config import DEFAULT_CALIBRATION_POINTS
from racing_line.trajectory import AggregatedPoint, Trajectory
from racing_line.transform import (
    AffineTransform,
    CalibrationError,
    Correspondence,
    DirectTransform,
    Projector,
    calibration_residuals,
    interpolate_position,
    project_point,
    rotation_center,
    solve_calibration,
)


def _trajectory(*coords) -> Trajectory:
    return Trajectory(tuple(
        AggregatedPoint(timestamp=str(i), lat=lat, lon=lon) for i, (lat, lon) in enumerate(coords)
    ))


def test_calibration_reproduces_reference_pixels():
    result = solve_calibration(DEFAULT_CALIBRATION_POINTS)

    assert result.ok
    for ref in DEFAULT_CALIBRATION_POINTS:
        projected = project_point(ref.lat, ref.lon, result.transform)
        assert projected.x == pytest.approx(ref.pixel_x, abs=1e-6)
        assert projected.y == pytest.approx(ref.pixel_y, abs=1e-6)
    assert max(calibration_residuals(DEFAULT_CALIBRATION_POINTS, result.transform)) < 1e-6


def test_calibration_recovers_a_known_affine_map():
    expected = AffineTransform(a=2.0, b=-3.0, c=5.0, d=0.5, e=4.0, f=-1.0)
    refs = []
    for lat, lon in [(0.0, 0.0), (1.0, 0.0), (0.0, 1.0)]:
        pixel = project_point(lat, lon, expected)
        refs.append(Correspondence(lat=lat, lon=lon, pixel_x=pixel.x, pixel_y=pixel.y))

    transform = solve_calibration(refs).unwrap()

    for field in "abcdef":
        assert getattr(transform, field) == pytest.approx(getattr(expected, field))


def test_collinear_points_are_undefined():
    refs = [
        Correspondence(0, 0, 10, 10),
        Correspondence(1, 1, 20, 30),
        Correspondence(2, 2, 40, 70),
    ]

    result = solve_calibration(refs)

    assert not result.ok
    assert result.transform is None
    assert "collinear" in result.reason
    with pytest.raises(CalibrationError):
        result.unwrap()


def test_nearly_collinear_track_points_are_undefined():
    refs = [
        Correspondence(33.5300000, -86.6200000, 0, 0),
        Correspondence(33.5310000, -86.6190000, 100, 100),
        Correspondence(33.5320000, -86.6180000 + 1e-15, 200, 210),
    ]

    assert not solve_calibration(refs).ok


def test_coincident_and_non_finite_points_are_undefined():
    same = Correspondence(33.5, -86.6, 1, 1)
    assert not solve_calibration([same, same, same]).ok

    refs = [Correspondence(0, 0, 0, 0), Correspondence(1, 0, 1, 0), Correspondence(0, math.nan, 0, 1)]
    assert not solve_calibration(refs).ok


def test_calibration_needs_exactly_three_points():
    with pytest.raises(ValueError):
        solve_calibration(DEFAULT_CALIBRATION_POINTS[:2])


def test_direct_projection_uses_local_origin_and_offsets():
    transform = DirectTransform(a=2.0, e=-3.0, c=10.0, f=20.0, rotation=0.0)

    point = project_point(1.0, 2.0, transform, origin=(0.0, 0.0))

    assert point.x == pytest.approx(14.0)
    assert point.y == pytest.approx(17.0)


def test_direct_projection_rotates_about_center():
    transform = DirectTransform(a=2.0, e=-3.0, c=10.0, f=20.0, rotation=90.0)

    about_origin = project_point(1.0, 2.0, transform, origin=(0.0, 0.0))
    about_self = project_point(1.0, 2.0, transform, origin=(0.0, 0.0), center=(4.0, -3.0))

    assert about_origin.x == pytest.approx(13.0)
    assert about_origin.y == pytest.approx(24.0)
    assert about_self.x == pytest.approx(14.0)
    assert about_self.y == pytest.approx(17.0)


def test_projection_is_not_clamped():
    transform = AffineTransform(a=0, b=0, c=-5000, d=0, e=0, f=99999)

    assert project_point(33.5, -86.6, transform) == (-5000, 99999)


def test_direct_projection_requires_origin():
    with pytest.raises(ValueError):
        project_point(1.0, 2.0, DirectTransform())


def test_unknown_transform_is_rejected():
    with pytest.raises(TypeError):
        project_point(1.0, 2.0, None)
    with pytest.raises(ValueError):
        Projector(_trajectory((1.0, 1.0)), None)


def test_projector_binds_origin_and_center_from_bounds():
    trajectory = _trajectory((33.5, -86.62), (33.6, -86.60), (33.55, -86.61))
    transform = DirectTransform(a=1000.0, e=-1000.0, c=0.0, f=0.0, rotation=0.0)

    projector = Projector(trajectory, transform)

    assert projector.origin == (33.5, -86.62)
    assert projector.center == pytest.approx(rotation_center(trajectory.bounds(), transform))
    assert projector.center == pytest.approx((10.0, -50.0))
    first = projector.project_trajectory()[0]
    assert first.x == pytest.approx(0.0)
    assert first.y == pytest.approx(0.0)


def test_direct_projector_over_empty_trajectory_is_inert():
    projector = Projector(Trajectory(), DirectTransform())

    assert projector.project_trajectory() == []
    assert projector.project_position(3.2) is None
    with pytest.raises(ValueError):
        projector.project(33.5, -86.6)


def test_interpolate_position_between_points_and_wraps():
    trajectory = _trajectory((0.0, 0.0), (10.0, 20.0), (20.0, 0.0))

    assert interpolate_position(trajectory, 0.5) == pytest.approx((5.0, 10.0))
    assert interpolate_position(trajectory, 2.5) == pytest.approx((10.0, 0.0))
    assert interpolate_position(trajectory, 4.0) == pytest.approx((10.0, 20.0))
    assert interpolate_position(Trajectory(), 1.0) is None
