"""
Coordinate Transforms for Racing Line Telemetry

This module converts latitude/longitude to render-space pixels. Two transform
families are supported:

- DirectTransform: axis-aligned scale, offset and rotation tuned by hand. It
  works on coordinates relative to the trajectory's minimum lat/lon so the
  scale knobs stay in a usable range.
- AffineTransform: a general affine map solved from three calibration
  correspondences. It works on raw lat/lon so the reference points are
  reproduced exactly.
"""

import logging
import math
from dataclasses import asdict, dataclass
from typing import List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np

from . import constants
from . import utils
from .trajectory import Bounds, Trajectory

logger = logging.getLogger(__name__)

# Relative tolerance on the calibration determinant
COLLINEAR_TOLERANCE = 1e-9


class CalibrationError(ValueError):
    """Raised when an undefined calibration is used as a transform."""


class Point2D(NamedTuple):
    x: float
    y: float


@dataclass(frozen=True)
class DirectTransform:
    """Hand-tuned scale (a: X per degree lon, e: Y per degree lat), offset and rotation."""

    a: float = constants.DEFAULT_TRANSFORM["a"]
    e: float = constants.DEFAULT_TRANSFORM["e"]
    c: float = constants.DEFAULT_TRANSFORM["c"]
    f: float = constants.DEFAULT_TRANSFORM["f"]
    rotation: float = constants.DEFAULT_TRANSFORM["rotation"]

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class AffineTransform:
    """x = a*lat + b*lon + c, y = d*lat + e*lon + f."""

    a: float
    b: float
    c: float
    d: float
    e: float
    f: float

    def to_dict(self) -> dict:
        return asdict(self)


Transform = Union[DirectTransform, AffineTransform]


@dataclass(frozen=True)
class Correspondence:
    """A known (geo, pixel) reference pair."""

    lat: float
    lon: float
    pixel_x: float
    pixel_y: float
    name: str = ""


@dataclass(frozen=True)
class CalibrationResult:
    """Outcome of a calibration solve; transform is None when undefined."""

    transform: Optional[AffineTransform]
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.transform is not None

    def unwrap(self) -> AffineTransform:
        if self.transform is None:
            raise CalibrationError(f"Calibration undefined: {self.reason}")
        return self.transform


def _rotate(x: float, y: float, degrees: float, center: Tuple[float, float]) -> Tuple[float, float]:
    rad = math.radians(degrees)
    cos, sin = math.cos(rad), math.sin(rad)
    cx, cy = center
    rotated_x = cos * (x - cx) - sin * (y - cy) + cx
    rotated_y = sin * (x - cx) + cos * (y - cy) + cy
    return rotated_x, rotated_y


def project_point(lat: float, lon: float, transform: Transform,
                  origin: Optional[Tuple[float, float]] = None,
                  center: Optional[Tuple[float, float]] = None) -> Point2D:
    """
    Project a geographic coordinate into render space.

    No clamping is applied; out-of-canvas values are returned as-is.

    Args:
        lat: Latitude in degrees.
        lon: Longitude in degrees.
        transform: DirectTransform or AffineTransform.
        origin: (min_lat, min_lon) local origin. Required for DirectTransform.
        center: Rotation center in unrotated pixel space. DirectTransform only;
                defaults to (0, 0).

    Returns:
        Point2D in render-space pixels.

    Raises:
        TypeError: If transform is not a known transform type.
        ValueError: If a DirectTransform is used without an origin.
    """
    if isinstance(transform, AffineTransform):
        return Point2D(
            transform.a * lat + transform.b * lon + transform.c,
            transform.d * lat + transform.e * lon + transform.f,
        )

    if isinstance(transform, DirectTransform):
        if origin is None:
            raise ValueError("DirectTransform projection requires a local origin")
        lat_ref, lon_ref = origin
        x = (lon - lon_ref) * transform.a
        y = (lat - lat_ref) * transform.e
        x, y = _rotate(x, y, transform.rotation, center or (0.0, 0.0))
        return Point2D(x + transform.c, y + transform.f)

    raise TypeError(f"Unsupported transform: {transform!r}")


def rotation_center(bounds: Bounds, transform: DirectTransform) -> Tuple[float, float]:
    """
    Midpoint of the trajectory's bounding box in unrotated pixel space.

    Args:
        bounds: Trajectory lat/lon bounds.
        transform: Direct transform supplying the scale.

    Returns:
        (x, y) rotation center, before the c/f offsets are applied.
    """
    return (
        (bounds.max_lon - bounds.min_lon) * transform.a / 2,
        (bounds.max_lat - bounds.min_lat) * transform.e / 2,
    )


def solve_calibration(correspondences: Sequence[Correspondence]) -> CalibrationResult:
    """
    Solve an affine transform from exactly three (geo, pixel) correspondences.

    The X coefficients (a, b, c) and Y coefficients (d, e, f) come from two
    2x2 systems solved with Cramer's rule over the shared denominator
    (lat1-lat0)(lon2-lon0) - (lat2-lat0)(lon1-lon0).

    Args:
        correspondences: Three reference pairs.

    Returns:
        CalibrationResult holding the transform, or None plus a reason when the
        geo points are collinear, coincident, or not finite.

    Raises:
        ValueError: If not exactly three correspondences are given.
    """
    if len(correspondences) != 3:
        raise ValueError(f"Calibration needs exactly 3 correspondences, got {len(correspondences)}")

    p0, p1, p2 = correspondences
    values = [v for p in correspondences for v in (p.lat, p.lon, p.pixel_x, p.pixel_y)]
    if not utils.all_finite(values):
        return _undefined("reference coordinates must be finite numbers")

    dlat1, dlon1 = p1.lat - p0.lat, p1.lon - p0.lon
    dlat2, dlon2 = p2.lat - p0.lat, p2.lon - p0.lon
    denom = dlat1 * dlon2 - dlat2 * dlon1

    scale = (abs(dlat1) + abs(dlat2)) * (abs(dlon1) + abs(dlon2))
    if scale == 0 or abs(denom) <= COLLINEAR_TOLERANCE * scale:
        return _undefined("reference points are collinear")

    dx1, dx2 = p1.pixel_x - p0.pixel_x, p2.pixel_x - p0.pixel_x
    dy1, dy2 = p1.pixel_y - p0.pixel_y, p2.pixel_y - p0.pixel_y

    a = (dx1 * dlon2 - dx2 * dlon1) / denom
    b = (dx2 * dlat1 - dx1 * dlat2) / denom
    c = p0.pixel_x - a * p0.lat - b * p0.lon

    d = (dy1 * dlon2 - dy2 * dlon1) / denom
    e = (dy2 * dlat1 - dy1 * dlat2) / denom
    f = p0.pixel_y - d * p0.lat - e * p0.lon

    if not utils.all_finite([a, b, c, d, e, f]):
        return _undefined("solved coefficients are not finite")

    transform = AffineTransform(a=a, b=b, c=c, d=d, e=e, f=f)
    logger.info("Calibrated transform from %s", ", ".join(p.name or "?" for p in correspondences))
    return CalibrationResult(transform=transform)


def _undefined(reason: str) -> CalibrationResult:
    logger.warning("Calibration undefined: %s", reason)
    return CalibrationResult(transform=None, reason=reason)


def calibration_residuals(correspondences: Sequence[Correspondence],
                          transform: AffineTransform) -> List[float]:
    """Pixel distance between each reference pixel and its projected geo point."""
    residuals = []
    for p in correspondences:
        projected = project_point(p.lat, p.lon, transform)
        residuals.append(float(np.hypot(projected.x - p.pixel_x, projected.y - p.pixel_y)))
    return residuals


class Projector:
    """
    A transform bound to one trajectory.

    The local origin and rotation center of a DirectTransform are computed
    once from the trajectory bounds.
    """

    def __init__(self, trajectory: Trajectory, transform: Optional[Transform]):
        if transform is None:
            raise ValueError("Cannot project without a transform")
        if not isinstance(transform, (DirectTransform, AffineTransform)):
            raise TypeError(f"Unsupported transform: {transform!r}")
        self.trajectory = trajectory
        self.transform = transform
        self.origin: Optional[Tuple[float, float]] = None
        self.center: Optional[Tuple[float, float]] = None

        bounds = trajectory.bounds()
        if isinstance(transform, DirectTransform) and bounds is not None:
            self.origin = (bounds.min_lat, bounds.min_lon)
            self.center = rotation_center(bounds, transform)

    def project(self, lat: float, lon: float) -> Point2D:
        return project_point(lat, lon, self.transform, origin=self.origin, center=self.center)

    def project_trajectory(self) -> List[Point2D]:
        return [self.project(p.lat, p.lon) for p in self.trajectory]

    def project_position(self, fractional_position: float) -> Optional[Point2D]:
        """Project the interpolated location at a fractional index, None when empty."""
        location = interpolate_position(self.trajectory, fractional_position)
        if location is None:
            return None
        return self.project(*location)


def interpolate_position(trajectory: Trajectory,
                         fractional_position: float) -> Optional[Tuple[float, float]]:
    """
    Interpolated (lat, lon) at a fractional index along a closed circuit.

    The segment after the last point wraps back to the first.

    Args:
        trajectory: The racing line.
        fractional_position: Real-valued index; taken modulo the length.

    Returns:
        (lat, lon), or None for an empty trajectory.
    """
    n = len(trajectory)
    if n == 0:
        return None
    position = fractional_position % n
    index = int(math.floor(position))
    if index >= n:
        # float modulo of tiny negatives can land exactly on n
        index, position = 0, 0.0
    t = position - index
    current = trajectory[index]
    following = trajectory[(index + 1) % n]
    lat = current.lat + (following.lat - current.lat) * t
    lon = current.lon + (following.lon - current.lon) * t
    return lat, lon
