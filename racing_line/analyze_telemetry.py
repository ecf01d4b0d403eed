"""
Racing Line Telemetry Module

This module turns telemetry exports into a time-ordered racing line, projects
it into track-map pixels, and simulates a car running along it.

This file serves as a compatibility layer that re-exports the public functions
from the modular structure.
"""

# Import constants
from .constants import DATA_DIR, DEFAULT_DATA_FILE, CALIBRATION_FILE

# Import data loading functions
from .data_loading import (
    TelemetryFormatError,
    TelemetryRow,
    parse_telemetry_text,
    load_telemetry_file,
)

# Import aggregation functions
from .aggregation import (
    group_rows,
    sort_by_time,
    build_trajectory,
)

# Import trajectory model
from .trajectory import (
    AggregatedPoint,
    Trajectory,
    TrajectoryStore,
    EMPTY_TRAJECTORY,
)

# Import transform functions
from .transform import (
    AffineTransform,
    CalibrationError,
    CalibrationResult,
    Correspondence,
    DirectTransform,
    Projector,
    interpolate_position,
    project_point,
    solve_calibration,
)

# Import configuration helpers
from .config import (
    DEFAULT_CALIBRATION_POINTS,
    direct_transform_from_mapping,
    load_calibration_points,
)

# Import telemetry functions
from .telemetry import (
    build_point_records,
    trajectory_to_geojson,
    summarize_trajectory,
    split_sectors,
    points_within,
)

# Import export functions
from .export import (
    export_projected_csv,
)

# Import session functions
from .session import (
    RaceSession,
    build_session_payload,
    load_trajectory,
)
