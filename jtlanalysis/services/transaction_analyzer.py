# services/transaction_analyzer.py
"""
Per-transaction (label) rollup and table sorting.
"""

import logging
from typing import Any, Dict, List, Optional

from jtlanalysis.utils.stats_utils import round_half_up, to_number

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = ("label", "count", "avg_response_time", "error_rate", "error_count")


def build_transaction_breakdown(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Group records by label, in first-seen label order.

    The average is maintained online, avg = (avg * (n - 1) + elapsed) / n,
    as each record is visited in collection order.

    Returns:
        One dict per label: label, count, avg_response_time (rounded to a
        whole ms), error_count, error_rate (percent, unrounded). Empty on
        failure.
    """
    breakdown: Dict[str, Dict[str, Any]] = {}
    try:
        for record in records:
            label = record.get("label")
            stats = breakdown.setdefault(label, {"count": 0, "avg_time": 0.0, "error_count": 0})

            stats["count"] += 1
            elapsed = to_number(record.get("elapsed")) or 0.0
            stats["avg_time"] = (stats["avg_time"] * (stats["count"] - 1) + elapsed) / stats["count"]
            if not record.get("success"):
                stats["error_count"] += 1

        return [
            {
                "label": label,
                "count": stats["count"],
                "avg_response_time": round_half_up(stats["avg_time"]),
                "error_count": stats["error_count"],
                "error_rate": stats["error_count"] / stats["count"] * 100,
            }
            for label, stats in breakdown.items()
        ]
    except Exception as e:
        logger.warning("Transaction breakdown failed, returning no rows: %s", e)
        return []


def sort_transactions(
    transactions: List[Dict[str, Any]],
    sort_by: Optional[str] = "count",
    descending: bool = True,
) -> List[Dict[str, Any]]:
    """
    Sort transaction rows by one column.

    Args:
        transactions: Output of build_transaction_breakdown().
        sort_by: One of SORTABLE_FIELDS; None keeps the input order.
        descending: Sort direction.

    Raises:
        ValueError: If sort_by is not a sortable column.
    """
    if sort_by is None:
        return list(transactions)
    if sort_by not in SORTABLE_FIELDS:
        raise ValueError(
            f"Cannot sort transactions by '{sort_by}'. Valid fields: {', '.join(SORTABLE_FIELDS)}"
        )
    return sorted(transactions, key=lambda row: row[sort_by], reverse=descending)
