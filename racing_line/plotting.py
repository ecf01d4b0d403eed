"""
Calibration Check Plot for Racing Line Telemetry

This module draws the projected racing line in render space together with the
calibration reference pixels, so a transform can be checked against the
track map without running the front end.
"""

from pathlib import Path
from typing import Optional, Sequence, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.patches import Rectangle

from . import constants
from . import telemetry
from .transform import Correspondence, Projector


def plot_projected_track(projector: Projector, output_path: Path,
                         calibration: Sequence[Correspondence] = (),
                         car_position: Optional[float] = None,
                         canvas: Tuple[int, int] = (constants.CANVAS_WIDTH, constants.CANVAS_HEIGHT)) -> Path:
    """
    Save a PNG of the projected racing line.

    Sectors are drawn in separate colours, the canvas outline shows the track
    map extent, and calibration pixels are marked with their names. The Y axis
    is inverted to match screen coordinates.

    Args:
        projector: Projector bound to the trajectory and transform.
        output_path: Destination PNG path.
        calibration: Reference points to mark.
        car_position: Optional fractional position of the car to mark.
        canvas: (width, height) of the render space.

    Returns:
        The output path.
    """
    width, height = canvas
    fig, ax = plt.subplots(figsize=(12, 12 * height / width))
    ax.add_patch(Rectangle((0, 0), width, height, fill=False, edgecolor="#444444", linewidth=1))

    sector_colors = ["#22d3ee", "#8b5cf6", "#f472b6"]
    for idx, sector in enumerate(telemetry.split_sectors(projector.trajectory)):
        if sector.is_empty:
            continue
        pixels = [projector.project(p.lat, p.lon) for p in sector]
        ax.plot([p.x for p in pixels], [p.y for p in pixels],
                color=sector_colors[idx % len(sector_colors)], linewidth=2,
                label=f"Sector {idx + 1}")

    for ref in calibration:
        ax.scatter([ref.pixel_x], [ref.pixel_y], color="red", s=40, zorder=5)
        ax.annotate(ref.name, (ref.pixel_x, ref.pixel_y), textcoords="offset points",
                    xytext=(6, 6), fontsize=8, color="red")

    if car_position is not None:
        car = projector.project_position(car_position)
        if car is not None:
            ax.scatter([car.x], [car.y], color="#00ff00", edgecolors="black", s=80, zorder=6, label="Car")

    ax.set_xlim(0, width)
    ax.set_ylim(height, 0)
    ax.set_aspect("equal")
    ax.set_title(f"Racing line ({len(projector.trajectory)} points)")
    if not projector.trajectory.is_empty:
        ax.legend(loc="lower right")

    output_path = Path(output_path)
    fig.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return output_path
