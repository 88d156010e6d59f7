# services/jtl_parser.py
"""
Tolerant JTL/CSV/TSV parser.

Turns the raw text of a JMeter-style results file into a list of normalized
record dicts:

  raw text → delimiter/header detection → row splitting → field mapping
           → validation and defaulting → retained records

Only a file with fewer than two lines is a hard failure. Rows that fail
validation are skipped silently and only show up in the debug counters.

Low-level splitting and coercion live in utils/jtl_utils.py.
"""

import time
import logging
from typing import Any, Callable, Dict, List, Optional

from jtlanalysis.utils.config import get_section
from jtlanalysis.utils.jtl_utils import detect_header, map_field, split_row

logger = logging.getLogger(__name__)

MIN_FIELDS_PER_ROW = 3

STRUCTURAL_ERROR = "File must contain at least a header and one data row"
NO_RECORDS_ERROR = "No valid records found. Check file format and required fields."


def wall_clock_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


# ============================================================
# Public API
# ============================================================

def parse_jtl_content(
    content: str,
    clock: Optional[Callable[[], int]] = None,
    config: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Parse the full text of a results file in one pass.

    Args:
        content: File content, already decoded as text.
        clock: Zero-argument callable returning epoch milliseconds, used for
               placeholder timestamps. Defaults to the wall clock.
        config: Optional loaded configuration (see utils/config.py).

    Returns:
        dict with:
          - success: True if at least one record was retained
          - records: List of record dicts
          - error: Error message, or None
          - debug_info: total_lines, header_line, detected_headers,
            detected_delimiter, parsed_records, valid_records, sample_record
    """
    parser_cfg = get_section("parser", config)
    lines = content.strip().split("\n")

    if len(lines) < 2:
        logger.info("JTL parse rejected: %d line(s), header and data row required", len(lines))
        return _build_result(
            records=[],
            error=STRUCTURAL_ERROR,
            total_lines=len(lines),
            header_line=lines[0] if lines else "",
            headers=[],
            delimiter="",
            parsed_records=0,
            sample_record=None,
        )

    header_line = lines[0]
    delimiter, headers = detect_header(header_line)
    logger.debug("Detected delimiter: %r", delimiter)
    logger.debug("Detected headers: %s", headers)

    now_ms = (clock or wall_clock_ms)()
    min_fields = min(len(headers), MIN_FIELDS_PER_ROW)

    records: List[Dict[str, Any]] = []
    parsed_records = 0
    sample_record: Optional[Dict[str, Any]] = None

    for raw_line in lines[1:]:
        line = raw_line.strip()
        if not line:
            continue

        values = split_row(line, delimiter)
        parsed_records += 1

        if len(values) < min_fields:
            continue

        record = build_record(headers, values)
        if not is_acceptable(record):
            continue

        apply_defaults(record, len(records), now_ms, parser_cfg)
        records.append(record)

        if sample_record is None:
            sample_record = dict(record)

    logger.info("Parsing complete: %d/%d valid records", len(records), parsed_records)

    return _build_result(
        records=records,
        error=None if records else NO_RECORDS_ERROR,
        total_lines=len(lines),
        header_line=header_line,
        headers=headers,
        delimiter=delimiter,
        parsed_records=parsed_records,
        sample_record=sample_record,
    )


# ============================================================
# Record Assembly
# ============================================================

def build_record(headers: List[str], values: List[str]) -> Dict[str, Any]:
    """
    Map header cells positionally onto value cells.

    Extra values without a header and empty values are ignored.
    """
    record: Dict[str, Any] = {}
    for header, raw_value in zip(headers, values):
        value = raw_value.strip()
        if not value:
            continue
        map_field(header, value, record)
    return record


def is_acceptable(record: Dict[str, Any]) -> bool:
    """
    A record is kept when it has time data (timestamp or elapsed) and at
    least one of a label, a response code or an explicit success flag.

    A zero timestamp counts as missing.
    """
    has_time_data = bool(record.get("timestamp")) or record.get("elapsed") is not None
    has_label = bool(record.get("label"))
    has_response_data = bool(record.get("response_code")) or record.get("success") is not None
    return has_time_data and (has_label or has_response_data)


def apply_defaults(
    record: Dict[str, Any],
    accepted_count: int,
    now_ms: int,
    parser_cfg: Dict[str, Any],
) -> None:
    """
    Fill fields the file did not provide, in place.

    A missing timestamp is synthesized as now - accepted_count * step, so
    successive placeholder timestamps strictly decrease in file order.
    """
    if not record.get("timestamp") and record.get("elapsed") is not None:
        record["timestamp"] = now_ms - accepted_count * parser_cfg["synthetic_timestamp_step_ms"]
    if record.get("elapsed") is None and record.get("timestamp"):
        record["elapsed"] = parser_cfg["default_elapsed_ms"]
    if not record.get("label"):
        record["label"] = parser_cfg["default_label"]
    if not record.get("response_code"):
        record["response_code"] = parser_cfg["default_response_code"]
    if record.get("success") is None:
        record["success"] = True
    if not record.get("thread_name"):
        record["thread_name"] = parser_cfg["default_thread_name"]


def _build_result(
    records: List[Dict[str, Any]],
    error: Optional[str],
    total_lines: int,
    header_line: str,
    headers: List[str],
    delimiter: str,
    parsed_records: int,
    sample_record: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    return {
        "success": len(records) > 0,
        "records": records,
        "error": error,
        "debug_info": {
            "total_lines": total_lines,
            "header_line": header_line,
            "detected_headers": headers,
            "detected_delimiter": delimiter,
            "parsed_records": parsed_records,
            "valid_records": len(records),
            "sample_record": sample_record,
        },
    }
