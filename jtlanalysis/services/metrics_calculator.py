# services/metrics_calculator.py
"""
Overall performance metrics for a record collection.

Two distinct "no data" shapes are returned on purpose:
  - no records at all          → every value 0, error_rate 0
  - records but no usable time → every value 0, error_rate 100 and
                                 total_requests = number of records
"""

import logging
from typing import Any, Dict, List

import numpy as np

from jtlanalysis.utils.stats_utils import numeric_array, percentile, round2, to_number

logger = logging.getLogger(__name__)

METRIC_PERCENTILES = (90, 95, 99)


def empty_metrics(error_rate: float = 0.0, total_requests: int = 0) -> Dict[str, Any]:
    """All-zero metrics snapshot."""
    return {
        "avg_response_time": 0.0,
        "min_response_time": 0.0,
        "max_response_time": 0.0,
        "p90_response_time": 0.0,
        "p95_response_time": 0.0,
        "p99_response_time": 0.0,
        "throughput": 0.0,
        "error_rate": error_rate,
        "total_requests": total_requests,
        "successful_requests": 0,
        "failed_requests": 0,
        "avg_latency": 0.0,
        "test_duration": 0.0,
    }


def calculate_metrics(records: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Compute the summary metrics for a record collection.

    Elapsed values that are not numeric or are negative are ignored for the
    response-time statistics. Throughput uses the full record count over the
    observed timestamp span. Never raises.

    Args:
        records: Normalized record dicts (see services/jtl_parser.py).

    Returns:
        Metrics dict; times in ms, rates in percent, throughput in req/s.
    """
    if not records:
        return empty_metrics()

    total = len(records)
    try:
        elapsed = numeric_array([r.get("elapsed") for r in records])
        valid = elapsed[np.isfinite(elapsed) & (elapsed >= 0)]

        if valid.size == 0:
            logger.warning("No numeric elapsed values in %d records", total)
            return empty_metrics(error_rate=100.0, total_requests=total)

        sorted_elapsed = np.sort(valid)
        successful = sum(1 for r in records if r.get("success"))
        failed = total - successful
        duration = observed_duration_seconds(records)

        metrics = {
            "avg_response_time": round2(sorted_elapsed.mean()),
            "min_response_time": round2(sorted_elapsed[0]),
            "max_response_time": round2(sorted_elapsed[-1]),
            "throughput": round2(total / duration),
            "error_rate": round2(failed / total * 100),
            "total_requests": total,
            "successful_requests": successful,
            "failed_requests": failed,
            "avg_latency": round2(average_latency(records)),
            "test_duration": round2(duration),
        }
        for p in METRIC_PERCENTILES:
            metrics[f"p{p}_response_time"] = round2(percentile(sorted_elapsed, p))
        return metrics

    except Exception as e:
        logger.warning("Metrics calculation failed, returning zero metrics: %s", e)
        return empty_metrics(error_rate=100.0, total_requests=total)


def observed_duration_seconds(records: List[Dict[str, Any]]) -> float:
    """
    Observed test span in seconds from the positive numeric timestamps.

    Falls back to 1 second when fewer than two valid timestamps exist or
    they span no time.
    """
    timestamps = [
        ts for ts in (to_number(r.get("timestamp")) for r in records)
        if ts is not None and ts > 0
    ]
    if len(timestamps) < 2:
        return 1.0
    span = (max(timestamps) - min(timestamps)) / 1000
    return span if span > 0 else 1.0


def average_latency(records: List[Dict[str, Any]]) -> float:
    """Mean of the optional latency field; 0 when no record carries one."""
    latencies = [
        value for value in (to_number(r.get("latency")) for r in records)
        if value is not None
    ]
    if not latencies:
        return 0.0
    return sum(latencies) / len(latencies)
