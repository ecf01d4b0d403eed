"""
Telemetry Records and Summaries for Racing Line Telemetry

This module converts a Trajectory into JSON-ready records, GeoJSON, summary
statistics around the car position, and sector splits.
"""

import math
from typing import Dict, List, Sequence

import numpy as np

from . import constants
from . import utils
from .transform import Point2D
from .trajectory import AggregatedPoint, Trajectory


def build_point_record(point: AggregatedPoint) -> Dict:
    """
    Convert one AggregatedPoint to a telemetry record dictionary.

    Recognised channels are exposed under friendly names; every channel,
    recognised or not, is also kept under "metrics".

    Args:
        point: Aggregated point.

    Returns:
        Dictionary with timestamp, lat, lon, friendly channel values and metrics.
    """
    record = {
        "timestamp": point.timestamp,
        "lat": point.lat,
        "lon": point.lon,
    }
    for alias, channel in constants.CHANNEL_ALIASES.items():
        record[alias] = utils.round_float(point.channel(channel))
    record["metrics"] = dict(point.metrics)
    return record


def build_point_records(trajectory: Trajectory) -> List[Dict]:
    return [build_point_record(point) for point in trajectory]


def trajectory_to_geojson(trajectory: Trajectory) -> Dict:
    """
    Convert a trajectory to a GeoJSON FeatureCollection.

    Creates a LineString feature for the racing line and a Point feature
    marking the start/finish line.

    Args:
        trajectory: The racing line.

    Returns:
        GeoJSON FeatureCollection with the LineString and start/finish Point.

    Raises:
        ValueError: If the trajectory is empty.
    """
    coordinates = [[point.lon, point.lat] for point in trajectory]

    if not coordinates:
        raise ValueError("No valid coordinates were found in the trajectory.")

    line_feature = {
        "type": "Feature",
        "geometry": {
            "type": "LineString",
            "coordinates": coordinates,
        },
        "properties": {
            "sampleCount": len(coordinates),
        },
    }

    start_feature = {
        "type": "Feature",
        "geometry": {
            "type": "Point",
            "coordinates": coordinates[0],
        },
        "properties": {"marker": "start_finish"},
    }

    return {
        "type": "FeatureCollection",
        "features": [line_feature, start_feature],
    }


def summarize_trajectory(trajectory: Trajectory, position: float = 0.0,
                         window: int = constants.CONTEXT_WINDOW,
                         sample_limit: int = constants.CONTEXT_SAMPLE_LIMIT) -> Dict:
    """
    Summarise the trajectory around the car's current position.

    The position wraps around the closed circuit like the car does.

    Statistics (max/average speed, bounds) cover the whole trajectory; the
    sample covers up to `window` points either side of the position, limited
    to the first `sample_limit` records.

    Args:
        trajectory: The racing line.
        position: Fractional car position.
        window: Points before and after the position to include.
        sample_limit: Maximum number of sample records.

    Returns:
        Dictionary with "stats" and "sample_data". An empty trajectory yields
        zero counts and an "error" message in stats instead of raising.
    """
    if trajectory.is_empty:
        return {
            "stats": {
                "total_points": 0,
                "current_position": 0,
                "error": "No telemetry data available",
            },
            "sample_data": [],
        }

    current = int(math.floor(position % len(trajectory)))
    start = max(0, current - window)
    end = min(len(trajectory), current + window)
    relevant = trajectory.points[start:end]

    speeds = [p.speed for p in trajectory if p.speed is not None]
    max_speed = float(np.max(speeds)) if speeds else 0.0
    avg_speed = float(np.mean(speeds)) if speeds else 0.0

    bounds = trajectory.bounds()
    stats = {
        "total_points": len(trajectory),
        "current_position": current,
        "sample_start": start,
        "sample_end": end,
        "context_window_size": len(relevant),
        "max_speed": utils.round_float(max_speed, 2),
        "avg_speed": utils.round_float(avg_speed, 2),
        "bounds": bounds._asdict(),
    }

    return {
        "stats": stats,
        "sample_data": [build_point_record(p) for p in relevant[:sample_limit]],
    }


def split_sectors(trajectory: Trajectory, sectors: int = constants.SECTOR_COUNT) -> List[Trajectory]:
    """
    Split the trajectory into equal point-count sectors.

    The last sector takes any remainder.

    Args:
        trajectory: The racing line.
        sectors: Number of sectors. Default 3.

    Returns:
        List of `sectors` trajectories (some empty when there are few points).
    """
    if sectors < 1:
        raise ValueError(f"sectors must be at least 1, got {sectors}")
    per_sector = len(trajectory) // sectors
    result = []
    for idx in range(sectors):
        start = idx * per_sector
        end = len(trajectory) if idx == sectors - 1 else start + per_sector
        result.append(Trajectory(trajectory.points[start:end]))
    return result


def points_within(points: Sequence[Point2D], x_min: float, x_max: float,
                  y_min: float, y_max: float) -> List[Point2D]:
    """Projected points strictly inside the given pixel box."""
    return [p for p in points if x_min < p.x < x_max and y_min < p.y < y_max]
