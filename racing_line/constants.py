"""
Constants for Racing Line Telemetry

This module defines path constants, telemetry channel names, and default
tuning values used throughout the racing line pipeline.
"""

import os
from pathlib import Path

# Telemetry Data folder is one level up from racing_line/ unless overridden
DATA_DIR = Path(os.environ.get(
    "RACING_LINE_DATA_DIR", Path(__file__).parent.parent / "Telemetry Data"
))
DEFAULT_DATA_FILE = DATA_DIR / "lap_2.csv"
CALIBRATION_FILE = DATA_DIR / "calibration.csv"

# Required columns of the delimited telemetry table
TIMESTAMP_COLUMN = "timestamp"
NAME_COLUMN = "telemetry_name"
VALUE_COLUMN = "telemetry_value"
REQUIRED_COLUMNS = (TIMESTAMP_COLUMN, NAME_COLUMN, VALUE_COLUMN)

# GPS channels (decimal degrees despite the VBOX naming)
LAT_CHANNEL = "VBOX_Lat_Min"
LON_CHANNEL = "VBOX_Long_Minutes"

# Recognised metric channels, keyed by the friendly attribute name
CHANNEL_ALIASES = {
    "speed": "speed",
    "gear": "gear",
    "rpm": "nmot",
    "throttle": "aps",
    "brake_front": "pbrake_f",
    "brake_rear": "pbrake_r",
    "steering_angle": "Steering_Angle",
    "accel_x": "accx_can",
    "accel_y": "accy_can",
    "lap_distance": "Laptrigger_lapdist_dls",
}

# Direct (slider) transform defaults
DEFAULT_TRANSFORM = {
    "a": 142000.0,
    "e": -143000.0,
    "c": 200.0,
    "f": 600.0,
    "rotation": 0.0,
}

# Car model defaults
DEFAULT_MAX_SPEED = 200.0
DEFAULT_ACCEL_RATE = 5.0
DEFAULT_BRAKE_RATE = 8.0
ACCELERATE_STEP = 20.0
BRAKE_STEP = 30.0

# Rates are expressed per nominal frame at this cadence
NOMINAL_FPS = 60

# Fractional index advanced per unit of speed per frame
POSITION_SCALE = 0.02

# Summary window around the car position
CONTEXT_WINDOW = 50
CONTEXT_SAMPLE_LIMIT = 20
SECTOR_COUNT = 3

# Canvas used by the overlay renderer
CANVAS_WIDTH = 2056
CANVAS_HEIGHT = 1212
