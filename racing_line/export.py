"""
Export Functions for Racing Line Telemetry

This module exports the projected racing line to CSV for external analysis
or for overlaying in other tools.
"""

import csv
import io

from . import utils
from .transform import Projector


def export_projected_csv(projector: Projector) -> str:
    """
    Export the projected racing line to CSV format.

    Args:
        projector: Projector bound to the trajectory and transform to export.

    Returns:
        CSV string with one row per trajectory point. Only the header is
        written for an empty trajectory.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer)

    # Write header
    writer.writerow([
        "index",
        "timestamp",
        "lat",
        "lon",
        "pixel_x",
        "pixel_y",
        "speed",
        "gear",
        "throttle",
        "brake_front",
    ])

    # Write data rows
    for idx, (point, pixel) in enumerate(zip(projector.trajectory, projector.project_trajectory())):
        writer.writerow([
            idx,
            point.timestamp,
            point.lat,
            point.lon,
            utils.round_float(pixel.x, 2),
            utils.round_float(pixel.y, 2),
            point.speed,
            point.gear,
            point.throttle,
            point.brake_front,
        ])

    return buffer.getvalue()
