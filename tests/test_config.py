import pytest

from racing_line.config import (
    DEFAULT_CALIBRATION_POINTS,
    direct_transform_from_mapping,
    load_calibration_points,
)
from racing_line.transform import DirectTransform


def test_missing_calibration_file_uses_built_in_points(tmp_path):
    points = load_calibration_points(tmp_path / "nope.csv")

    assert points == list(DEFAULT_CALIBRATION_POINTS)
    assert [p.name for p in points] == ["Finish Line", "Turn 1", "Turn 4"]


def test_calibration_file_accepts_alternate_headers(tmp_path):
    path = tmp_path / "calibration.csv"
    path.write_text(
        " Name , Latitude , Longitude ,pixelX,pixelY\n"
        "Start,33.5326722,-86.6196083,1441,658\n"
        "T1,33.5327,-86.6195,1447,639\n",
        encoding="utf-8",
    )

    points = load_calibration_points(path)

    assert [p.name for p in points] == ["Start", "T1"]
    assert points[1].lat == 33.5327
    assert points[1].pixel_y == 639.0


def test_calibration_file_without_names_gets_numbered(tmp_path):
    path = tmp_path / "calibration.csv"
    path.write_text("lat,lon,x,y\n1,2,3,4\n", encoding="utf-8")

    (point,) = load_calibration_points(path)

    assert point.name == "Point 1"
    assert (point.lat, point.lon, point.pixel_x, point.pixel_y) == (1.0, 2.0, 3.0, 4.0)


def test_calibration_file_with_bad_values_raises(tmp_path):
    path = tmp_path / "calibration.csv"
    path.write_text("lat,lon,pixel_x,pixel_y\n1,2,three,4\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_calibration_points(path)

    path.write_text("lat,lon,pixel_x\n1,2,3\n", encoding="utf-8")
    with pytest.raises(ValueError) as excinfo:
        load_calibration_points(path)
    assert "pixel_y" in str(excinfo.value)


def test_direct_transform_from_partial_mapping():
    transform = direct_transform_from_mapping({"rotation": "12.5", "c": None, "unused": 3})

    assert transform == DirectTransform(rotation=12.5)


def test_direct_transform_rejects_non_numeric_setting():
    with pytest.raises(ValueError):
        direct_transform_from_mapping({"a": "wide"})
