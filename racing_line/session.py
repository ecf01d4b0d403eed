"""
Session Orchestration for Racing Line Telemetry

This module runs the load pipeline (parse, aggregate, order) and owns the live
state of a visualizer session: the current trajectory, the active transform,
the simulated car, and the frame loop that drives it.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, List, NamedTuple, Optional

from . import constants
from . import data_loading
from . import aggregation
from . import telemetry
from .motion import MotionSimulator
from .scheduler import FrameScheduler
from .trajectory import EMPTY_TRAJECTORY, Trajectory, TrajectoryStore
from .transform import DirectTransform, Projector, Transform

logger = logging.getLogger(__name__)


def load_trajectory(data_file: Path = constants.DEFAULT_DATA_FILE) -> Trajectory:
    """
    Load a telemetry export and build its trajectory.

    Main entry point of the pipeline:
    1. Parses the delimited file into telemetry rows
    2. Groups rows by timestamp
    3. Drops points without a GPS fix and orders the rest by time

    Args:
        data_file: Path to the telemetry export. Defaults to DEFAULT_DATA_FILE.

    Returns:
        Trajectory, possibly empty. An empty result is logged, not raised.
    """
    rows = data_loading.load_telemetry_file(data_file)
    trajectory = aggregation.build_trajectory(rows)
    if trajectory.is_empty:
        logger.warning("No GPS points found in %s (%d rows)", Path(data_file).name, len(rows))
    else:
        logger.info("Loaded %d GPS points from %s", len(trajectory), Path(data_file).name)
    return trajectory


def build_session_payload(trajectory: Trajectory, position: float = 0.0) -> Dict:
    """
    Build the read-only payload describing a loaded trajectory.

    Args:
        trajectory: The racing line.
        position: Fractional car position used for the summary window.

    Returns:
        Dictionary containing:
        - telemetry: List of point records
        - track: GeoJSON FeatureCollection, or None when empty
        - summary: Summary statistics around the position
        - sectors: Point counts per sector
    """
    return {
        "telemetry": telemetry.build_point_records(trajectory),
        "track": None if trajectory.is_empty else telemetry.trajectory_to_geojson(trajectory),
        "summary": telemetry.summarize_trajectory(trajectory, position),
        "sectors": [len(sector) for sector in telemetry.split_sectors(trajectory)],
    }


class FrameUpdate(NamedTuple):
    speed: float
    position: float


FrameListener = Callable[[FrameUpdate], None]


class RaceSession:
    """
    Live state of one visualizer session.

    The trajectory, transform and motion state each have a single owner here.
    Loading a new trajectory stops the frame loop, swaps the trajectory,
    resets the car, and restarts the loop with a frame callback bound to the
    new trajectory length.
    """

    def __init__(self, scheduler: FrameScheduler,
                 transform: Optional[Transform] = None,
                 motion: Optional[MotionSimulator] = None,
                 trajectory: Trajectory = EMPTY_TRAJECTORY):
        self.scheduler = scheduler
        self.transform: Transform = transform if transform is not None else DirectTransform()
        self.motion = motion if motion is not None else MotionSimulator()
        self.store = TrajectoryStore(trajectory)
        self._listeners: List[FrameListener] = []
        self.last_update = FrameUpdate(self.motion.speed, self.motion.position)

    @property
    def trajectory(self) -> Trajectory:
        return self.store.current

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def projector(self) -> Projector:
        return Projector(self.trajectory, self.transform)

    def set_transform(self, transform: Transform) -> None:
        if transform is None:
            raise ValueError("Cannot clear the transform")
        self.transform = transform

    def accelerate(self, amount: float = constants.ACCELERATE_STEP) -> None:
        self.motion.accelerate(amount)

    def brake(self, amount: float = constants.BRAKE_STEP) -> None:
        self.motion.brake(amount)

    def subscribe(self, listener: FrameListener) -> Callable[[], None]:
        """Register a per-frame listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start(self) -> None:
        self.scheduler.start(self._frame_callback(len(self.trajectory)))

    def stop(self) -> None:
        self.scheduler.stop()

    def load(self, trajectory: Trajectory) -> None:
        """
        Replace the trajectory and restart the car from position 0.

        Args:
            trajectory: New racing line; may be empty.
        """
        was_running = self.scheduler.running
        self.scheduler.stop()
        self.store.replace(trajectory)
        self.motion.reset()
        self.last_update = FrameUpdate(self.motion.speed, self.motion.position)
        if was_running:
            self.start()

    def _frame_callback(self, trajectory_length: int) -> Callable[[float], None]:
        def on_frame(delta_time: float) -> None:
            position = self.motion.tick(delta_time, trajectory_length)
            update = FrameUpdate(self.motion.speed, position)
            self.last_update = update
            for listener in list(self._listeners):
                listener(update)

        return on_frame
