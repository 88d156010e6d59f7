# services/chart_aggregator.py
"""
Time-series aggregation for chart views.

Records are partitioned into fixed-width windows anchored at the earliest
valid timestamp:

    bucket = floor((timestamp - min_timestamp) / bucket_ms)

Only records with a positive finite timestamp and a finite elapsed value
take part; the others stay in the record collection but are not charted.
"""

import logging
import datetime
from typing import Any, Callable, Dict, List, Optional

import numpy as np
import pandas as pd

from jtlanalysis.utils.config import get_section
from jtlanalysis.utils.frame_utils import records_to_dataframe, to_native_type
from jtlanalysis.utils.stats_utils import percentile

logger = logging.getLogger(__name__)


def _nearest_rank(p: float) -> Callable[[pd.Series], float]:
    def _agg(values: pd.Series) -> float:
        return percentile(np.sort(values.to_numpy(dtype=float)), p)
    # groupby.agg needs distinct function names per column
    _agg.__name__ = f"p{p}"
    return _agg


def format_bucket_label(bucket_start_ms: int, time_format: str) -> str:
    """Render a bucket start (epoch ms) as a UTC label."""
    moment = datetime.datetime.fromtimestamp(bucket_start_ms / 1000, tz=datetime.timezone.utc)
    return moment.strftime(time_format)


def build_chart_data(
    records: List[Dict[str, Any]],
    bucket_seconds: Optional[int] = None,
    config: Optional[Dict[str, Any]] = None,
) -> List[Dict[str, Any]]:
    """
    Aggregate records into time buckets.

    When every valid record shares one timestamp, or bucket_seconds is not
    positive, a single bucket summarizing all valid records is returned.

    Args:
        records: Normalized record dicts.
        bucket_seconds: Bucket width; defaults to chart.bucket_seconds.
        config: Optional loaded configuration.

    Returns:
        List of bucket dicts sorted by their 'timestamp' label. Empty on any
        internal failure.
    """
    chart_cfg = get_section("chart", config)
    if bucket_seconds is None:
        bucket_seconds = chart_cfg["bucket_seconds"]

    if not records:
        return []

    try:
        df = records_to_dataframe(records)
        valid = df[
            np.isfinite(df["timestamp"])
            & (df["timestamp"] > 0)
            & np.isfinite(df["elapsed"])
        ].copy()
        if valid.empty:
            return []

        min_ts = valid["timestamp"].min()
        span = valid["timestamp"].max() - min_ts
        bucket_ms = bucket_seconds * 1000

        if span <= 0 or bucket_ms <= 0:
            valid["bucket"] = 0
            width_seconds = bucket_seconds if bucket_seconds > 0 else 1
        else:
            valid["bucket"] = np.floor((valid["timestamp"] - min_ts) / bucket_ms)
            valid = valid[np.isfinite(valid["bucket"]) & (valid["bucket"] >= 0)].copy()
            width_seconds = bucket_seconds
        valid["bucket"] = valid["bucket"].astype(int)
        valid["failed"] = ~valid["success"].astype(bool)

        summary = valid.groupby("bucket", sort=True).agg(
            count=("elapsed", "size"),
            avg_rt=("elapsed", "mean"),
            min_rt=("elapsed", "min"),
            max_rt=("elapsed", "max"),
            p90=("elapsed", _nearest_rank(90)),
            p95=("elapsed", _nearest_rank(95)),
            p99=("elapsed", _nearest_rank(99)),
            errors=("failed", "sum"),
            avg_latency=("latency", "mean"),
            total_bytes=("bytes", "sum"),
        )

        if chart_cfg["fill_gaps"] and len(summary) > 1:
            window_count = int(summary.index.max()) + 1
            if window_count <= chart_cfg["max_buckets"]:
                summary = summary.reindex(range(window_count), fill_value=0)
            else:
                logger.warning(
                    "Skipping gap fill: %d windows exceeds max_buckets=%d; emitting %d occupied buckets",
                    window_count, chart_cfg["max_buckets"], len(summary),
                )

        frame = _bucket_frame(summary, min_ts, bucket_ms, width_seconds, chart_cfg["time_format"])
        buckets = [
            {key: to_native_type(value) for key, value in row.items()}
            for row in frame.to_dict("records")
        ]
        return sorted(buckets, key=lambda b: b["timestamp"])

    except Exception as e:
        logger.warning("Chart aggregation failed, returning no buckets: %s", e)
        return []


def _bucket_frame(
    summary: pd.DataFrame,
    min_ts: float,
    bucket_ms: int,
    width_seconds: int,
    time_format: str,
) -> pd.DataFrame:
    """Build the output columns for every bucket at once."""
    count = summary["count"].astype(int)
    errors = summary["errors"].astype(int)
    index = summary.index.to_series().astype("int64")
    starts = (min_ts + index * bucket_ms) if bucket_ms > 0 else pd.Series(min_ts, index=summary.index)
    starts = starts.astype("int64")
    occupied = count > 0

    def _ms(column: str) -> pd.Series:
        values = pd.to_numeric(summary[column], errors="coerce").astype(float)
        return values.where(occupied, 0.0).fillna(0.0).round(2)

    success_rate = ((count - errors) / count.where(occupied) * 100).fillna(0.0).round(2)
    total_bytes = pd.to_numeric(summary["total_bytes"], errors="coerce").fillna(0.0).astype(float)

    return pd.DataFrame({
        "timestamp": [format_bucket_label(int(ms), time_format) for ms in starts],
        "bucket_start": starts.to_numpy(),
        "count": count.to_numpy(),
        "avg_response_time": _ms("avg_rt").to_numpy(),
        "min_response_time": _ms("min_rt").to_numpy(),
        "max_response_time": _ms("max_rt").to_numpy(),
        "p90_response_time": _ms("p90").to_numpy(),
        "p95_response_time": _ms("p95").to_numpy(),
        "p99_response_time": _ms("p99").to_numpy(),
        "errors": errors.to_numpy(),
        "success_rate": success_rate.to_numpy(),
        "throughput": (count / width_seconds).round(2).to_numpy(),
        "avg_latency": _ms("avg_latency").to_numpy(),
        "bandwidth": (total_bytes / width_seconds / 1024).round(2).to_numpy(),
    })
