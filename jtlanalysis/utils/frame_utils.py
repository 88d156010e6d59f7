# utils/frame_utils.py
"""
pandas helpers for turning record lists into DataFrames and back into
JSON-friendly Python values.
"""

import math
from typing import Any, Dict, List

import numpy as np
import pandas as pd

# Column order used when a record list is turned into a DataFrame
RECORD_COLUMNS = [
    "timestamp",
    "elapsed",
    "label",
    "response_code",
    "success",
    "thread_name",
    "failure_message",
    "bytes",
    "sent_bytes",
    "latency",
    "connect",
    "url",
]


def records_to_dataframe(records: List[Dict[str, Any]]) -> pd.DataFrame:
    """
    Build a DataFrame with one row per record.

    Numeric columns are coerced with errors="coerce" so malformed values
    become NaN instead of raising. Optional columns missing from every
    record are still present (all NaN).
    """
    df = pd.DataFrame(records, columns=RECORD_COLUMNS)
    for col in ("timestamp", "elapsed", "bytes", "sent_bytes", "latency", "connect"):
        df[col] = pd.to_numeric(df[col], errors="coerce")
    return df


def to_native_type(value: Any) -> Any:
    """Convert numpy scalars to Python types; NaN becomes None."""
    if value is None:
        return None
    if isinstance(value, (float, np.floating)) and math.isnan(value):
        return None
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return float(value)
    if isinstance(value, np.bool_):
        return bool(value)
    return value
