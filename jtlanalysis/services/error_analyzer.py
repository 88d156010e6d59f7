# services/error_analyzer.py
"""
Error analysis: failed records grouped by response code.
"""

import logging
from typing import Any, Dict, List, Optional

from jtlanalysis.utils.config import get_section
from jtlanalysis.utils.stats_utils import round2

logger = logging.getLogger(__name__)


def analyze_errors(
    records: List[Dict[str, Any]],
    limit: Optional[int] = None,
    config: Optional[Dict[str, Any]] = None,
) -> List[Dict[str, Any]]:
    """
    Group failed records by response code.

    Percentages are relative to the number of failed records, not to all
    records. The error message is the first non-empty failure message seen
    for the code; affected transactions keep first-seen order.

    Args:
        records: Normalized record dicts.
        limit: Keep only the top N groups (None keeps all).
        config: Optional loaded configuration.

    Returns:
        List of dicts (response_code, count, percentage, error_message,
        affected_transactions) sorted by count descending. Empty on failure.
    """
    fallback_message = get_section("errors", config)["fallback_message"]

    try:
        failed = [r for r in records if not r.get("success")]
        if not failed:
            return []

        groups: Dict[str, Dict[str, Any]] = {}
        for record in failed:
            code = str(record.get("response_code", ""))
            group = groups.setdefault(code, {"count": 0, "message": None, "labels": {}})
            group["count"] += 1
            if not group["message"] and record.get("failure_message"):
                group["message"] = record["failure_message"]
            group["labels"].setdefault(record.get("label"), None)

        total_failed = len(failed)
        results = [
            {
                "response_code": code,
                "count": group["count"],
                "percentage": round2(group["count"] / total_failed * 100),
                "error_message": group["message"] or fallback_message,
                "affected_transactions": [label for label in group["labels"] if label],
            }
            for code, group in groups.items()
        ]
        results.sort(key=lambda g: g["count"], reverse=True)

        if limit is not None:
            results = results[:limit]
        return results

    except Exception as e:
        logger.warning("Error analysis failed, returning no groups: %s", e)
        return []
