"""
Timestamp Aggregation for Racing Line Telemetry

This module fuses sparse key/value telemetry rows into one record per
timestamp and orders the geo-tagged records chronologically.
"""

import logging
from typing import Dict, Iterable, List

import pandas as pd

from . import constants
from . import utils
from .data_loading import TelemetryRow
from .trajectory import AggregatedPoint, Trajectory

logger = logging.getLogger(__name__)


def group_rows(rows: Iterable[TelemetryRow]) -> List[AggregatedPoint]:
    """
    Group telemetry rows by exact timestamp string.

    Rows missing a timestamp, name, or value are skipped, as are values that
    do not parse as finite numbers. Within a timestamp the last value written
    for a channel wins. No geo filtering happens here.

    Args:
        rows: TelemetryRow records in file order.

    Returns:
        One AggregatedPoint per distinct timestamp, in first-seen order.
    """
    grouped: Dict[str, Dict[str, float]] = {}
    skipped_rows = 0
    skipped_values = 0

    for row in rows:
        if (utils.is_blank(row.timestamp) or utils.is_blank(row.telemetry_name)
                or utils.is_blank(row.telemetry_value)):
            skipped_rows += 1
            continue

        value = utils.safe_float(row.telemetry_value)
        if value is None:
            skipped_values += 1
            continue

        grouped.setdefault(row.timestamp, {})[row.telemetry_name] = value

    if skipped_rows or skipped_values:
        logger.debug("Skipped %d incomplete rows and %d non-numeric values",
                     skipped_rows, skipped_values)

    points = []
    for timestamp, channels in grouped.items():
        metrics = {
            name: value for name, value in channels.items()
            if name not in (constants.LAT_CHANNEL, constants.LON_CHANNEL)
        }
        points.append(AggregatedPoint(
            timestamp=timestamp,
            lat=channels.get(constants.LAT_CHANNEL),
            lon=channels.get(constants.LON_CHANNEL),
            metrics=metrics,
        ))
    return points


def sort_by_time(points: List[AggregatedPoint]) -> List[AggregatedPoint]:
    """
    Stable chronological sort of points by parsed timestamp.

    Timestamps that cannot be parsed sort after every parseable one and keep
    their relative input order.

    Args:
        points: Points to order.

    Returns:
        New list sorted ascending by time.
    """
    if not points:
        return []

    parsed = pd.to_datetime(
        pd.Series([p.timestamp for p in points]),
        format="mixed",
        utc=True,
        errors="coerce",
    )
    order = parsed.sort_values(kind="stable", na_position="last").index
    return [points[i] for i in order]


def build_trajectory(rows: Iterable[TelemetryRow]) -> Trajectory:
    """
    Build a Trajectory from raw telemetry rows.

    Groups rows by timestamp, drops points lacking latitude or longitude, and
    sorts the remainder chronologically.

    Args:
        rows: TelemetryRow records in file order.

    Returns:
        Trajectory of geo-tagged points. Empty when nothing usable remains.
    """
    points = group_rows(rows)
    located = [p for p in points if p.has_position]
    if len(located) < len(points):
        logger.debug("Dropped %d points without a GPS fix", len(points) - len(located))
    return Trajectory(tuple(sort_by_time(located)))
