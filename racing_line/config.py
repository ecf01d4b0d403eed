"""
Configuration Loading for Racing Line Telemetry

This module loads calibration reference points from CSV and builds direct
transforms from partial settings (query strings, JSON bodies).
"""

import logging
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

import pandas as pd

from . import constants
from . import utils
from .transform import Correspondence, DirectTransform

logger = logging.getLogger(__name__)

# Barber Motorsports Park reference points on the 2056x1212 track map
DEFAULT_CALIBRATION_POINTS = (
    Correspondence(lat=33.5326722, lon=-86.6196083, pixel_x=1441, pixel_y=658, name="Finish Line"),
    Correspondence(lat=33.5327, lon=-86.6195, pixel_x=1447, pixel_y=639, name="Turn 1"),
    Correspondence(lat=33.5318, lon=-86.6208, pixel_x=1146, pixel_y=964, name="Turn 4"),
)

COLUMN_ALIASES = {
    "name": ("name", "Name", "label"),
    "lat": ("lat", "Lat", "Latitude", "gpsLat"),
    "lon": ("lon", "Long", "Longitude", "gpsLon"),
    "pixel_x": ("pixel_x", "pixelX", "x"),
    "pixel_y": ("pixel_y", "pixelY", "y"),
}


def _find_column(columns: Sequence[str], field: str) -> Optional[str]:
    for alias in COLUMN_ALIASES[field]:
        if alias in columns:
            return alias
    return None


def load_calibration_points(path: Path = constants.CALIBRATION_FILE) -> List[Correspondence]:
    """
    Load calibration reference points from a CSV file.

    Header whitespace is stripped and common alternate column names are
    accepted (e.g. 'Latitude', 'pixelX'). When the file does not exist the
    built-in Barber Motorsports Park points are returned.

    Args:
        path: Path to the calibration CSV. Defaults to CALIBRATION_FILE.

    Returns:
        List of Correspondence records in file order.

    Raises:
        ValueError: If a coordinate column is missing or a value is not numeric.
    """
    path = Path(path)
    if not path.exists():
        logger.info("No calibration file at %s; using built-in reference points", path)
        return list(DEFAULT_CALIBRATION_POINTS)

    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = df.columns.str.strip()

    columns = {field: _find_column(list(df.columns), field) for field in COLUMN_ALIASES}
    missing = [field for field in ("lat", "lon", "pixel_x", "pixel_y") if columns[field] is None]
    if missing:
        raise ValueError(f"Calibration file {path.name} is missing column(s): {', '.join(missing)}")

    points = []
    for idx, row in enumerate(df.to_dict(orient="records")):
        coords = {}
        for field in ("lat", "lon", "pixel_x", "pixel_y"):
            value = utils.safe_float(row[columns[field]])
            if value is None:
                raise ValueError(f"Calibration row {idx + 1}: {field} is not a number")
            coords[field] = value
        name = str(row[columns["name"]]).strip() if columns["name"] else f"Point {idx + 1}"
        points.append(Correspondence(name=name, **coords))

    logger.info("Loaded %d calibration points from %s", len(points), path)
    return points


def direct_transform_from_mapping(values: Mapping[str, object],
                                  base: DirectTransform = DirectTransform()) -> DirectTransform:
    """
    Build a DirectTransform from a partial mapping of settings.

    Keys that are absent or None keep the value from base.

    Args:
        values: Mapping with any of a, e, c, f, rotation.
        base: Transform supplying the defaults.

    Returns:
        New DirectTransform.

    Raises:
        ValueError: If a supplied value is not a finite number.
    """
    settings = base.to_dict()
    for key in settings:
        raw = values.get(key)
        if raw is None:
            continue
        value = utils.safe_float(raw)
        if value is None:
            raise ValueError(f"Transform setting {key!r} must be a number, got {raw!r}")
        settings[key] = value
    return DirectTransform(**settings)
