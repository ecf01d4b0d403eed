import pytest
from fastapi.testclient import TestClient

import app as app_module
from racing_line.config import DEFAULT_CALIBRATION_POINTS


LAP = (
    "lap,telemetry_name,telemetry_value,timestamp\n"
    "1,VBOX_Lat_Min,33.5320,2025-09-06T18:40:10.100Z\n"
    "1,VBOX_Long_Minutes,-86.6200,2025-09-06T18:40:10.100Z\n"
    "1,speed,120,2025-09-06T18:40:10.100Z\n"
    "1,VBOX_Lat_Min,33.5325,2025-09-06T18:40:10.000Z\n"
    "1,VBOX_Long_Minutes,-86.6190,2025-09-06T18:40:10.000Z\n"
    "1,speed,140,2025-09-06T18:40:10.000Z\n"
)


@pytest.fixture
def client(tmp_path, monkeypatch):
    (tmp_path / "lap_2.csv").write_text(LAP, encoding="utf-8")
    (tmp_path / "no_gps.csv").write_text(
        "timestamp,telemetry_name,telemetry_value\nt1,speed,100\n", encoding="utf-8"
    )
    (tmp_path / "calibration.csv").write_text(
        "name,lat,lon,pixel_x,pixel_y\n"
        + "".join(f"{p.name},{p.lat},{p.lon},{p.pixel_x},{p.pixel_y}\n" for p in DEFAULT_CALIBRATION_POINTS),
        encoding="utf-8",
    )
    monkeypatch.setattr(app_module, "DATA_DIR", tmp_path)
    monkeypatch.setattr(app_module, "session_cache", {})
    return TestClient(app_module.app)


def test_datasets_exclude_calibration_file(client):
    response = client.get("/api/datasets")

    assert response.status_code == 200
    assert [d["filename"] for d in response.json()] == ["lap_2.csv", "no_gps.csv"]


def test_trajectory_is_time_ordered(client):
    records = client.get("/api/trajectory").json()

    assert [r["speed"] for r in records] == [140.0, 120.0]
    assert records[0]["lat"] == 33.5325


def test_unknown_dataset_is_404(client):
    assert client.get("/api/trajectory", params={"dataset": "missing.csv"}).status_code == 404
    assert client.get("/api/trajectory", params={"dataset": "../lap_2.csv"}).status_code == 404


def test_track_of_dataset_without_gps_is_404_but_trajectory_is_empty(client):
    assert client.get("/api/trajectory", params={"dataset": "no_gps.csv"}).json() == []
    assert client.get("/api/track", params={"dataset": "no_gps.csv"}).status_code == 404


def test_track_geojson(client):
    geojson = client.get("/api/track").json()

    assert geojson["type"] == "FeatureCollection"
    assert geojson["features"][0]["properties"]["sampleCount"] == 2


def test_summary(client):
    stats = client.get("/api/summary", params={"position": 1.5}).json()["stats"]

    assert stats["total_points"] == 2
    assert stats["current_position"] == 1
    assert stats["max_speed"] == 140.0


def test_direct_projection_with_overrides(client):
    body = client.get("/api/projection", params={"a": 1000, "e": -1000, "c": 0, "f": 0}).json()

    assert body["mode"] == "direct"
    assert body["transform"]["rotation"] == 0.0
    assert body["points"][1] == pytest.approx({"x": 0.0, "y": 0.0})
    assert body["points"][0]["x"] == pytest.approx(1.0)
    assert body["points"][0]["y"] == pytest.approx(-0.5)


def test_calibrated_projection(client):
    body = client.get("/api/projection", params={"mode": "calibrated"}).json()

    assert body["center"] is None
    assert set(body["transform"]) == {"a", "b", "c", "d", "e", "f"}
    assert len(body["points"]) == 2


def test_invalid_mode_is_rejected(client):
    assert client.get("/api/projection", params={"mode": "magic"}).status_code == 422


def test_calibrate_endpoint(client):
    points = [
        {"lat": p.lat, "lon": p.lon, "pixel_x": p.pixel_x, "pixel_y": p.pixel_y, "name": p.name}
        for p in DEFAULT_CALIBRATION_POINTS
    ]

    response = client.post("/api/calibrate", json={"points": points})

    assert response.status_code == 200
    coefficients = response.json()
    ref = DEFAULT_CALIBRATION_POINTS[2]
    x = coefficients["a"] * ref.lat + coefficients["b"] * ref.lon + coefficients["c"]
    assert x == pytest.approx(ref.pixel_x, abs=1e-6)


def test_calibrate_endpoint_rejects_collinear_and_wrong_count(client):
    collinear = [{"lat": i, "lon": i, "pixel_x": i, "pixel_y": 2 * i} for i in range(3)]
    response = client.post("/api/calibrate", json={"points": collinear})
    assert response.status_code == 422
    assert "collinear" in response.json()["detail"]

    response = client.post("/api/calibrate", json={"points": collinear[:2]})
    assert response.status_code == 422


def test_export_projection_csv(client):
    response = client.get("/api/export/projection", params={"mode": "calibrated"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "racing_line_calibrated.csv" in response.headers["content-disposition"]
    assert len(response.text.strip().splitlines()) == 3
