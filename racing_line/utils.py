"""
Utility Functions for Racing Line Telemetry

This module provides helper functions for value conversion, rounding, and
small numeric checks used throughout the pipeline.
"""

import math
import numpy as np
from typing import List, Optional


def safe_float(value) -> Optional[float]:
    """
    Convert a telemetry cell to a finite float.

    Args:
        value: Cell text or number.

    Returns:
        Float value, or None if conversion fails or the result is NaN/Inf.
    """
    if value is None:
        return None
    try:
        result = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


def is_blank(value) -> bool:
    """Return True for None or whitespace-only strings."""
    return value is None or not str(value).strip()


def round_float(value, digits: int = 3) -> Optional[float]:
    """
    Round a metric for JSON output.

    Args:
        value: Number to round, or None.
        digits: Decimal places kept. Default 3.

    Returns:
        Rounded float, or None for missing and non-finite values.
    """
    if value is None or not np.isfinite(value):
        return None
    return round(float(value), digits)


def all_finite(values: List[float]) -> bool:
    return bool(np.all(np.isfinite(np.asarray(values, dtype=float))))
