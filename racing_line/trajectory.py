"""
Trajectory Model for Racing Line Telemetry

This module defines the fused per-timestamp sample (AggregatedPoint), the
ordered racing line built from those samples (Trajectory), and the store that
swaps trajectories atomically and notifies subscribers.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Iterator, List, Mapping, NamedTuple, Optional, Tuple

from . import constants

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AggregatedPoint:
    """All channel values recorded at one timestamp."""

    timestamp: str
    lat: Optional[float]
    lon: Optional[float]
    metrics: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "metrics", MappingProxyType(dict(self.metrics)))

    @property
    def has_position(self) -> bool:
        return self.lat is not None and self.lon is not None

    def channel(self, name: str) -> Optional[float]:
        return self.metrics.get(name)

    @property
    def speed(self) -> Optional[float]:
        return self.channel(constants.CHANNEL_ALIASES["speed"])

    @property
    def gear(self) -> Optional[float]:
        return self.channel(constants.CHANNEL_ALIASES["gear"])

    @property
    def rpm(self) -> Optional[float]:
        return self.channel(constants.CHANNEL_ALIASES["rpm"])

    @property
    def throttle(self) -> Optional[float]:
        return self.channel(constants.CHANNEL_ALIASES["throttle"])

    @property
    def brake_front(self) -> Optional[float]:
        return self.channel(constants.CHANNEL_ALIASES["brake_front"])

    @property
    def brake_rear(self) -> Optional[float]:
        return self.channel(constants.CHANNEL_ALIASES["brake_rear"])

    @property
    def steering_angle(self) -> Optional[float]:
        return self.channel(constants.CHANNEL_ALIASES["steering_angle"])

    @property
    def accel_x(self) -> Optional[float]:
        return self.channel(constants.CHANNEL_ALIASES["accel_x"])

    @property
    def accel_y(self) -> Optional[float]:
        return self.channel(constants.CHANNEL_ALIASES["accel_y"])

    @property
    def lap_distance(self) -> Optional[float]:
        return self.channel(constants.CHANNEL_ALIASES["lap_distance"])


class Bounds(NamedTuple):
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float


@dataclass(frozen=True)
class Trajectory:
    """
    Time-ordered, geo-tagged racing line.

    An empty trajectory is the valid "no data loaded" state.
    """

    points: Tuple[AggregatedPoint, ...] = ()

    def __post_init__(self):
        points = tuple(self.points)
        for point in points:
            if not point.has_position:
                raise ValueError(f"Trajectory point at {point.timestamp!r} has no position")
        object.__setattr__(self, "points", points)

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[AggregatedPoint]:
        return iter(self.points)

    def __getitem__(self, index):
        return self.points[index]

    @property
    def is_empty(self) -> bool:
        return not self.points

    def bounds(self) -> Optional[Bounds]:
        """
        Latitude/longitude bounding box of the trajectory.

        Returns:
            Bounds, or None for an empty trajectory.
        """
        if self.is_empty:
            return None
        lats = [p.lat for p in self.points]
        lons = [p.lon for p in self.points]
        return Bounds(min(lats), max(lats), min(lons), max(lons))

    def origin(self) -> Optional[Tuple[float, float]]:
        """Local (min_lat, min_lon) origin, or None when empty."""
        bounds = self.bounds()
        if bounds is None:
            return None
        return bounds.min_lat, bounds.min_lon


EMPTY_TRAJECTORY = Trajectory()

TrajectoryListener = Callable[[Trajectory], None]


class TrajectoryStore:
    """
    Owner of the current trajectory.

    Replacement is a single reference swap, so readers see either the old or
    the new trajectory, never a mix.
    """

    def __init__(self, trajectory: Trajectory = EMPTY_TRAJECTORY):
        self._current = trajectory
        self._listeners: List[TrajectoryListener] = []

    @property
    def current(self) -> Trajectory:
        return self._current

    def replace(self, trajectory: Trajectory) -> Trajectory:
        """
        Swap in a new trajectory and notify subscribers.

        Args:
            trajectory: Trajectory to install.

        Returns:
            The previous trajectory.
        """
        previous = self._current
        self._current = trajectory
        logger.info("Trajectory replaced: %d -> %d points", len(previous), len(trajectory))
        for listener in list(self._listeners):
            listener(trajectory)
        return previous

    def subscribe(self, listener: TrajectoryListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
