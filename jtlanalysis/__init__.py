"""
JTL analysis package.

Parses JMeter-style JTL/CSV/TSV result logs with uncertain schemas and
derives performance metrics, time-bucketed chart series, transaction
rollups and error breakdowns as plain dict/list structures.

Version: 0.1.0
License: MIT
"""

from .services.jtl_parser import parse_jtl_content
from .services.metrics_calculator import calculate_metrics
from .services.chart_aggregator import build_chart_data
from .services.transaction_analyzer import build_transaction_breakdown, sort_transactions
from .services.error_analyzer import analyze_errors
from .services.jtl_session import JTLSession

__all__ = [
    "parse_jtl_content",
    "calculate_metrics",
    "build_chart_data",
    "build_transaction_breakdown",
    "sort_transactions",
    "analyze_errors",
    "JTLSession",
]
__version__ = "0.1.0"
