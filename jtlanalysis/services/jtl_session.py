# services/jtl_session.py
"""
Owner of the current record collection.

A session holds the records of exactly one parsed file. Loading a new file
replaces the collection wholesale (never merges) and drops every cached
view before parsing starts. Derived views are computed on demand and
memoized per revision, so a replaced collection can never serve a stale
result.
"""

import copy
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from jtlanalysis.utils.config import get_section, load_config
from jtlanalysis.services.jtl_parser import parse_jtl_content
from jtlanalysis.services.metrics_calculator import calculate_metrics
from jtlanalysis.services.chart_aggregator import build_chart_data
from jtlanalysis.services.transaction_analyzer import build_transaction_breakdown, sort_transactions
from jtlanalysis.services.error_analyzer import analyze_errors

logger = logging.getLogger(__name__)


class JTLSession:
    """Record collection plus revision-keyed cache of derived views."""

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.config = config if config is not None else load_config()
        self.clock = clock
        self.revision = 0
        self._records: List[Dict[str, Any]] = []
        self._last_parse_result: Optional[Dict[str, Any]] = None
        self._cache: Dict[Tuple[Any, ...], Any] = {}

    # -----------------------------------------------
    # Collection lifecycle
    # -----------------------------------------------
    def load(self, content: str, source_name: str = "") -> Dict[str, Any]:
        """
        Parse new file content and make it the current collection.

        The previous records and cached views are discarded first, even if
        the new content turns out to be unusable.

        Returns:
            The parse outcome dict from parse_jtl_content().
        """
        self._clear()
        result = parse_jtl_content(content, clock=self.clock, config=self.config)
        self._records = result["records"]
        self._last_parse_result = result

        debug = result["debug_info"]
        if result["success"]:
            logger.info(
                "Loaded %d performance records%s (revision %d)",
                len(self._records),
                f" from {source_name}" if source_name else "",
                self.revision,
            )
        else:
            logger.warning(
                "Parse failed: %s (lines=%d, delimiter=%r, headers=%s, parsed=%d, valid=%d)",
                result["error"],
                debug["total_lines"],
                debug["detected_delimiter"],
                ", ".join(debug["detected_headers"]),
                debug["parsed_records"],
                debug["valid_records"],
            )
        return result

    def reset(self) -> None:
        """Drop the current collection and every cached view."""
        self._clear()
        logger.info("Session reset (revision %d)", self.revision)

    def _clear(self) -> None:
        self._records = []
        self._last_parse_result = None
        self._cache.clear()
        self.revision += 1

    @property
    def records(self) -> List[Dict[str, Any]]:
        return self._records

    @property
    def last_parse_result(self) -> Optional[Dict[str, Any]]:
        return self._last_parse_result

    @property
    def has_data(self) -> bool:
        return bool(self._records)

    # -----------------------------------------------
    # Derived views
    # -----------------------------------------------
    def metrics(self) -> Dict[str, Any]:
        return self._memoized(("metrics",), lambda: calculate_metrics(self._records))

    def chart_data(self, bucket_seconds: Optional[int] = None) -> List[Dict[str, Any]]:
        if bucket_seconds is None:
            bucket_seconds = get_section("chart", self.config)["bucket_seconds"]
        return self._memoized(
            ("chart", bucket_seconds),
            lambda: build_chart_data(self._records, bucket_seconds, self.config),
        )

    def transactions(self, sort_by: Optional[str] = None, descending: bool = True) -> List[Dict[str, Any]]:
        breakdown = self._memoized(("transactions",), lambda: build_transaction_breakdown(self._records))
        return sort_transactions(breakdown, sort_by, descending)

    def top_errors(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        if limit is None:
            limit = get_section("errors", self.config)["top_errors_limit"]
        return self._memoized(
            ("errors", limit),
            lambda: analyze_errors(self._records, limit, self.config),
        )

    def _memoized(self, key: Tuple[Any, ...], compute: Callable[[], Any]) -> Any:
        cache_key = (self.revision,) + key
        if cache_key not in self._cache:
            self._cache[cache_key] = compute()
        # callers get their own copy; the cached view stays pristine
        return copy.deepcopy(self._cache[cache_key])
