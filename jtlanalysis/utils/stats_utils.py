# utils/stats_utils.py
"""
Small numeric helpers shared by the aggregation services.

Percentiles use the nearest-rank method (no interpolation), the same rule
JMeter's aggregate report applies to its 90/95/99 lines.
"""

import math
from typing import Any, Optional, Sequence

import numpy as np


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """
    Nearest-rank percentile over an ascending sequence.

    index = ceil(p / 100 * n) - 1, clamped to [0, n - 1], so p=0 yields the
    minimum and p>=100 the maximum.

    Args:
        sorted_values: Values sorted ascending.
        p: Percentile in the range 0..100.

    Returns:
        The selected value, or 0 for an empty sequence.
    """
    n = len(sorted_values)
    if n == 0:
        return 0
    index = math.ceil((p / 100) * n) - 1
    index = min(max(index, 0), n - 1)
    return sorted_values[index]


def to_number(value: Any) -> Optional[float]:
    """Coerce a value to a finite float, None if it is missing or not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def numeric_array(values: Sequence[Any]) -> np.ndarray:
    """Convert values to a float array, unparsable entries become NaN."""
    numbers = [to_number(v) for v in values]
    return np.array([np.nan if v is None else v for v in numbers], dtype=float)


def round2(value: float) -> float:
    """Round to two decimal places."""
    return round(float(value), 2)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (JavaScript Math.round)."""
    return int(math.floor(value + 0.5))
