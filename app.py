"""
FastAPI Web Application for Racing Line Telemetry

This module provides a read-only REST API over the racing line pipeline:
trajectory records, GeoJSON, summary statistics, projected pixel coordinates
for the track-map overlay, calibration solving, and CSV export.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from racing_line import analyze_telemetry

logger = logging.getLogger(__name__)


# ============================================================================
# APPLICATION SETUP
# ============================================================================

app = FastAPI(title="Racing Line Telemetry")

DATA_DIR = analyze_telemetry.DATA_DIR
CALIBRATION_FILENAME = analyze_telemetry.CALIBRATION_FILE.name


# ============================================================================
# DATASET DISCOVERY
# ============================================================================

def get_available_datasets() -> list:
    """
    Discover available telemetry exports in the data directory.

    Scans the data directory for .csv files (excluding the calibration file)
    and returns a list of available datasets with their filenames.

    Returns:
        List of dictionaries with 'filename' and 'display_name' keys.
    """
    datasets = []

    if not DATA_DIR.exists():
        return datasets

    for file_path in DATA_DIR.glob("*.csv"):
        if file_path.name == CALIBRATION_FILENAME:
            continue

        display_name = file_path.stem.replace("_", " ").title()
        datasets.append({
            "filename": file_path.name,
            "display_name": display_name,
        })

    datasets.sort(key=lambda x: x["filename"])
    return datasets


# ============================================================================
# TRAJECTORY LOADING & CACHING
# ============================================================================

# Cache for loaded trajectories (dataset_filename -> Trajectory)
session_cache: Dict[str, analyze_telemetry.Trajectory] = {}


def load_session(dataset_filename: Optional[str] = None) -> analyze_telemetry.Trajectory:
    """
    Load and aggregate the trajectory for a specific dataset.

    Trajectories are cached per filename; a cached entry is replaced as a
    whole, never mutated.

    Args:
        dataset_filename: Name of the data file to load. If None, uses default.

    Returns:
        Trajectory for the dataset (possibly empty).

    Raises:
        HTTPException: 404 if the dataset does not exist, 500 if loading fails.
    """
    if dataset_filename is None:
        dataset_filename = analyze_telemetry.DEFAULT_DATA_FILE.name

    if dataset_filename in session_cache:
        return session_cache[dataset_filename]

    data_file = DATA_DIR / dataset_filename
    if Path(dataset_filename).name != dataset_filename or not data_file.is_file():
        raise HTTPException(status_code=404, detail=f"Dataset file not found: {dataset_filename}")

    try:
        trajectory = analyze_telemetry.load_trajectory(data_file)
    except Exception as exc:
        logger.exception("Failed to load %s", dataset_filename)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to load telemetry: {exc}"
        ) from exc

    session_cache[dataset_filename] = trajectory
    return trajectory


def build_projector(trajectory: analyze_telemetry.Trajectory, mode: str,
                    settings: Dict[str, Optional[float]]) -> analyze_telemetry.Projector:
    """
    Build a projector for the requested transform mode.

    Args:
        trajectory: Trajectory to project.
        mode: 'direct' (tuned scale/offset/rotation) or 'calibrated'
              (solved from the calibration file).
        settings: Direct transform overrides (a, e, c, f, rotation).

    Returns:
        Projector bound to the trajectory.

    Raises:
        HTTPException: 422 for invalid settings or an undefined calibration.
    """
    if mode == "calibrated":
        try:
            points = analyze_telemetry.load_calibration_points(DATA_DIR / CALIBRATION_FILENAME)
            result = analyze_telemetry.solve_calibration(points)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        if not result.ok:
            raise HTTPException(status_code=422, detail=f"Calibration undefined: {result.reason}")
        return analyze_telemetry.Projector(trajectory, result.transform)

    try:
        transform = analyze_telemetry.direct_transform_from_mapping(settings)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return analyze_telemetry.Projector(trajectory, transform)


# ============================================================================
# API ROUTES - DATASET MANAGEMENT
# ============================================================================

@app.get("/api/datasets")
def get_datasets():
    """
    Get list of available datasets.

    Returns:
        List of dictionaries with 'filename' and 'display_name' keys.
    """
    return get_available_datasets()


# ============================================================================
# API ROUTES - DATA RETRIEVAL
# ============================================================================

@app.get("/api/trajectory")
def get_trajectory(dataset: Optional[str] = Query(None, description="Dataset filename to load")):
    """
    Get the time-ordered point records for a dataset.

    An empty list means the file contained no geo-tagged points.

    Args:
        dataset: Optional dataset filename. If not provided, uses default.

    Returns:
        List of point record dictionaries.
    """
    trajectory = load_session(dataset)
    return analyze_telemetry.build_point_records(trajectory)


@app.get("/api/track")
def get_track(dataset: Optional[str] = Query(None, description="Dataset filename to load")):
    """
    Get the track GeoJSON data for a dataset.

    Args:
        dataset: Optional dataset filename. If not provided, uses default.

    Returns:
        GeoJSON FeatureCollection with the racing line and start/finish marker.

    Raises:
        HTTPException: If the trajectory is empty (status 404).
    """
    trajectory = load_session(dataset)
    if trajectory.is_empty:
        raise HTTPException(status_code=404, detail="No GPS data in dataset")
    return analyze_telemetry.trajectory_to_geojson(trajectory)


@app.get("/api/summary")
def get_summary(dataset: Optional[str] = Query(None, description="Dataset filename to load"),
                position: float = Query(0.0, ge=0.0, description="Fractional car position")):
    """
    Get summary statistics around the car position.

    Args:
        dataset: Optional dataset filename. If not provided, uses default.
        position: Fractional index of the car along the trajectory.

    Returns:
        Dictionary with 'stats' and 'sample_data'.
    """
    trajectory = load_session(dataset)
    return analyze_telemetry.summarize_trajectory(trajectory, position)


@app.get("/api/projection")
def get_projection(dataset: Optional[str] = Query(None, description="Dataset filename to load"),
                   mode: str = Query("direct", pattern="^(direct|calibrated)$"),
                   a: Optional[float] = None,
                   e: Optional[float] = None,
                   c: Optional[float] = None,
                   f: Optional[float] = None,
                   rotation: Optional[float] = None):
    """
    Get the racing line projected into track-map pixels.

    Args:
        dataset: Optional dataset filename. If not provided, uses default.
        mode: 'direct' or 'calibrated'.
        a, e, c, f, rotation: Direct transform overrides; defaults otherwise.

    Returns:
        Dictionary with the transform used, the rotation center (direct mode
        only), and the list of projected {x, y} points.
    """
    trajectory = load_session(dataset)
    projector = build_projector(trajectory, mode, {"a": a, "e": e, "c": c, "f": f, "rotation": rotation})
    return {
        "mode": mode,
        "transform": projector.transform.to_dict(),
        "center": projector.center,
        "points": [{"x": p.x, "y": p.y} for p in projector.project_trajectory()],
    }


# ============================================================================
# API ROUTES - CALIBRATION
# ============================================================================

class CalibrationPoint(BaseModel):
    lat: float
    lon: float
    pixel_x: float
    pixel_y: float
    name: str = ""


class CalibrationRequest(BaseModel):
    points: List[CalibrationPoint]


@app.post("/api/calibrate")
def calibrate(request: CalibrationRequest):
    """
    Solve an affine transform from three reference correspondences.

    Args:
        request: Body with exactly three calibration points.

    Returns:
        Dictionary with the solved coefficients a..f.

    Raises:
        HTTPException: 422 if the count is wrong or the points are collinear.
    """
    correspondences = [
        analyze_telemetry.Correspondence(
            lat=p.lat, lon=p.lon, pixel_x=p.pixel_x, pixel_y=p.pixel_y, name=p.name
        )
        for p in request.points
    ]
    try:
        result = analyze_telemetry.solve_calibration(correspondences)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    if not result.ok:
        raise HTTPException(status_code=422, detail=f"Calibration undefined: {result.reason}")
    return result.transform.to_dict()


# ============================================================================
# API ROUTES - EXPORT
# ============================================================================

@app.get("/api/export/projection")
def export_projection(dataset: Optional[str] = Query(None, description="Dataset filename to export"),
                      mode: str = Query("direct", pattern="^(direct|calibrated)$")):
    """
    Export the projected racing line as CSV.

    Args:
        dataset: Optional dataset filename. If not provided, uses default.
        mode: 'direct' (default transform) or 'calibrated'.

    Returns:
        PlainTextResponse: CSV file with Content-Disposition header
        for download. Filename: racing_line_{mode}.csv
    """
    trajectory = load_session(dataset)
    projector = build_projector(trajectory, mode, {})
    csv_body = analyze_telemetry.export_projected_csv(projector)

    headers = {"Content-Disposition": f"attachment; filename=racing_line_{mode}.csv"}
    return PlainTextResponse(
        csv_body,
        media_type="text/csv",
        headers=headers
    )


# ============================================================================
# RUN INSTRUCTIONS
# ============================================================================
# Run with: uvicorn app:app --reload
