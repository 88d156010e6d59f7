"""Tests for jtlanalysis/utils/jtl_utils.py"""

import pytest

from jtlanalysis.utils.jtl_utils import (
    detect_delimiter,
    detect_header,
    map_field,
    normalize_header,
    parse_int,
    parse_int_or_zero,
    parse_success,
    split_row,
)


class TestSplitRow:
    def test_plain_comma_row(self):
        assert split_row("a,b,c", ",") == ["a", "b", "c"]

    def test_cells_are_trimmed(self):
        assert split_row(" a , b ,c ", ",") == ["a", "b", "c"]

    def test_quoted_cell_keeps_delimiter(self):
        assert split_row('a,"b,c",d', ",") == ["a", "b,c", "d"]

    def test_quote_inside_cell_is_literal(self):
        assert split_row('ab"c,d', ",") == ['ab"c', "d"]

    def test_unterminated_quote_does_not_raise(self):
        assert split_row('"abc,def', ",") == ["abc,def"]

    def test_empty_cells_preserved(self):
        assert split_row(",,x", ",") == ["", "", "x"]

    def test_tab_delimited(self):
        assert split_row("1000\t100\tLogin", "\t") == ["1000", "100", "Login"]


class TestDetectDelimiter:
    @pytest.mark.parametrize(
        "line, expected",
        [
            ("a\tb\tc", "\t"),
            ("a,b,c", ","),
            ("a;b;c", ";"),
            ("a|b|c", "|"),
            ("a,b,c;d", ","),
        ],
    )
    def test_picks_delimiter_with_most_fields(self, line, expected):
        assert detect_delimiter(line) == expected

    def test_tab_wins_ties(self):
        assert detect_delimiter("a,b\tc") == "\t"

    def test_single_column_defaults_to_tab(self):
        assert detect_delimiter("timestamp") == "\t"

    def test_quoted_delimiters_do_not_count(self):
        assert detect_delimiter('"a;b;c;d",e,f') == ","

    def test_detection_is_idempotent(self):
        line = "timeStamp;elapsed;label;responseCode"
        assert detect_delimiter(line) == detect_delimiter(line) == ";"

    def test_detect_header_returns_cells(self):
        delimiter, headers = detect_header('"timeStamp","elapsed","label"')
        assert delimiter == ","
        assert headers == ["timeStamp", "elapsed", "label"]


class TestCoercion:
    @pytest.mark.parametrize(
        "value, expected",
        [("123", 123), ("12.9", 12), (" 42ms", 42), ("-5", -5), ("abc", None), ("", None)],
    )
    def test_parse_int(self, value, expected):
        assert parse_int(value) == expected

    def test_parse_int_or_zero(self):
        assert parse_int_or_zero("abc") == 0
        assert parse_int_or_zero("2048") == 2048

    @pytest.mark.parametrize(
        "value, expected",
        [("true", True), ("TRUE", True), ("1", True), ("false", False), ("yes", False), ("0", False)],
    )
    def test_parse_success(self, value, expected):
        assert parse_success(value) is expected


class TestMapField:
    @pytest.mark.parametrize(
        "header, expected",
        [("timeStamp", "timestamp"), ("Response-Code", "responsecode"), ("Sent Bytes", "sentbytes")],
    )
    def test_normalize_header(self, header, expected):
        assert normalize_header(header) == expected

    @pytest.mark.parametrize(
        "header, field",
        [
            ("Time", "timestamp"),
            ("RT", "elapsed"),
            ("Sampler", "label"),
            ("Status", "response_code"),
            ("Thread", "thread_name"),
            ("Error", "failure_message"),
            ("URL", "url"),
        ],
    )
    def test_synonyms(self, header, field):
        record = {}
        map_field(header, "42", record)
        assert field in record

    def test_unknown_header_ignored(self):
        record = {}
        map_field("dataType", "text", record)
        assert record == {}

    def test_unparsable_gating_number_left_unset(self):
        record = {}
        map_field("elapsed", "n/a", record)
        map_field("timeStamp", "n/a", record)
        assert record == {}

    def test_unparsable_supplementary_number_is_zero(self):
        record = {}
        map_field("bytes", "n/a", record)
        map_field("sentBytes", "n/a", record)
        map_field("Latency", "n/a", record)
        assert record == {"bytes": 0, "sent_bytes": 0, "latency": 0}

    def test_response_message_does_not_replace_code(self):
        record = {}
        map_field("responseCode", "500", record)
        map_field("responseMessage", "Internal Server Error", record)
        assert record["response_code"] == "500"
        assert record["response_message"] == "Internal Server Error"

    def test_response_message_fills_missing_code(self):
        record = {}
        map_field("responseMessage", "OK", record)
        assert record["response_code"] == "OK"
