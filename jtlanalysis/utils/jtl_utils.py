"""
jtl_utils.py

Utility module for JTL/CSV/TSV result-log parsing.

Contains:
- Quote-aware row splitting and delimiter auto-detection
- Header normalization and the header synonym table
- Lenient integer/boolean coercion used while mapping fields

This module is stateless and has no side effects — it only parses and
transforms text. Record assembly and validation live in
services/jtl_parser.py.
"""

import re
from typing import Any, Callable, Dict, List, Optional, Tuple


# ============================================================
# Constants
# ============================================================

# Tried in order; ties keep the earlier candidate
DELIMITER_CANDIDATES = ["\t", ",", ";", "|"]

QUOTE_CHAR = '"'

# Leading signed integer, the same prefix rule JavaScript's parseInt applies
RE_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

# Anything that is not a lower-case letter or digit (applied after lower())
RE_NON_ALNUM = re.compile(r"[^a-z0-9]")


# ============================================================
# Row Splitting
# ============================================================

def split_row(line: str, delimiter: str) -> List[str]:
    """
    Split one line into cells with quote awareness.

    A double quote toggles the "inside quotes" state only at the start of the
    line, directly after a delimiter, or while already inside quotes; the
    toggling quote itself is dropped. Delimiters inside quotes do not split.
    Each cell is trimmed and one pair of wrapping quotes is removed.

    Malformed quoting never raises; it degrades to a best-effort split.

    Args:
        line: A single text line.
        delimiter: Single-character delimiter.

    Returns:
        Ordered list of cell strings (always at least one element).
    """
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False

    for i, char in enumerate(line):
        if char == QUOTE_CHAR and (i == 0 or line[i - 1] == delimiter or in_quotes):
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    fields.append("".join(current).strip())
    return [strip_wrapping_quotes(field) for field in fields]


def strip_wrapping_quotes(value: str) -> str:
    """Remove a single leading and a single trailing double quote."""
    if value.startswith(QUOTE_CHAR):
        value = value[1:]
    if value.endswith(QUOTE_CHAR):
        value = value[:-1]
    return value


def detect_delimiter(header_line: str) -> str:
    """
    Pick the delimiter that splits the header line into the most fields.

    Candidates are tried in DELIMITER_CANDIDATES order and only a strictly
    larger field count replaces the current best, so tab wins ties.

    Args:
        header_line: First line of the file.

    Returns:
        The chosen delimiter character.
    """
    best_delimiter = DELIMITER_CANDIDATES[0]
    max_fields = 0

    for delimiter in DELIMITER_CANDIDATES:
        field_count = len(split_row(header_line, delimiter))
        if field_count > max_fields:
            max_fields = field_count
            best_delimiter = delimiter

    return best_delimiter


def detect_header(header_line: str) -> Tuple[str, List[str]]:
    """
    Detect the delimiter and split the header line with it.

    Returns:
        Tuple of (delimiter, header cells).
    """
    delimiter = detect_delimiter(header_line)
    return delimiter, split_row(header_line, delimiter)


# ============================================================
# Value Coercion
# ============================================================

def parse_int(value: str) -> Optional[int]:
    """
    Parse the leading integer of a string.

    "123" → 123, "12.9" → 12, "  42ms" → 42, "abc" → None.

    Returns:
        The integer, or None if the string does not start with one.
    """
    match = RE_LEADING_INT.match(value)
    if match:
        return int(match.group(1))
    return None


def parse_int_or_zero(value: str) -> int:
    """Parse the leading integer of a string, 0 when there is none."""
    parsed = parse_int(value)
    return parsed if parsed is not None else 0


def parse_success(value: str) -> bool:
    """True iff the value is "true" (any case) or "1"."""
    return value.lower() == "true" or value == "1"


def _as_text(value: str) -> str:
    return value


# ============================================================
# Header Synonym Table
# ============================================================

# Each entry: (record field, coercer)
# A coercer returning None leaves the field unset.
FieldSetter = Tuple[str, Callable[[str], Any]]

HEADER_SYNONYMS: Dict[str, FieldSetter] = {
    # Gating integers: unparsable values leave the field unset
    "timestamp": ("timestamp", parse_int),
    "timstamp": ("timestamp", parse_int),
    "time": ("timestamp", parse_int),
    "elapsed": ("elapsed", parse_int),
    "responsetime": ("elapsed", parse_int),
    "rt": ("elapsed", parse_int),
    # Text fields
    "label": ("label", _as_text),
    "sampler": ("label", _as_text),
    "name": ("label", _as_text),
    "responsecode": ("response_code", _as_text),
    "code": ("response_code", _as_text),
    "status": ("response_code", _as_text),
    "success": ("success", parse_success),
    "result": ("success", parse_success),
    "threadname": ("thread_name", _as_text),
    "thread": ("thread_name", _as_text),
    "failuremessage": ("failure_message", _as_text),
    "error": ("failure_message", _as_text),
    "url": ("url", _as_text),
    # Supplementary integers: unparsable values become 0
    "bytes": ("bytes", parse_int_or_zero),
    "size": ("bytes", parse_int_or_zero),
    "sentbytes": ("sent_bytes", parse_int_or_zero),
    "requestsize": ("sent_bytes", parse_int_or_zero),
    "latency": ("latency", parse_int_or_zero),
    "connect": ("connect", parse_int_or_zero),
    "connecttime": ("connect", parse_int_or_zero),
    "grpthreads": ("grp_threads", parse_int_or_zero),
    "allthreads": ("all_threads", parse_int_or_zero),
}

# responseMessage keeps its own field and only stands in for a missing code
RESPONSE_MESSAGE_HEADER = "responsemessage"


def normalize_header(header: str) -> str:
    """Lower-case a header and strip every non-alphanumeric character."""
    return RE_NON_ALNUM.sub("", header.lower())


def map_field(header: str, value: str, record: Dict[str, Any]) -> None:
    """
    Set at most one canonical record field from a header/value pair.

    Unknown headers are ignored.

    Args:
        header: Raw header cell.
        value: Non-empty, trimmed value cell.
        record: Partially built record dict, updated in place.
    """
    key = normalize_header(header)

    if key == RESPONSE_MESSAGE_HEADER:
        record["response_message"] = value
        record.setdefault("response_code", value)
        return

    setter = HEADER_SYNONYMS.get(key)
    if setter is None:
        return

    field, coerce = setter
    coerced = coerce(value)
    if coerced is not None:
        record[field] = coerced
