"""Tests for jtlanalysis/services/jtl_parser.py"""

from jtlanalysis.services.jtl_parser import (
    NO_RECORDS_ERROR,
    STRUCTURAL_ERROR,
    parse_jtl_content,
)


def test_scenario_file_retains_both_rows(scenario_jtl):
    result = parse_jtl_content(scenario_jtl)

    assert result["success"] is True
    assert result["error"] is None
    assert len(result["records"]) == 2

    first, second = result["records"]
    assert first == {
        "timestamp": 1000,
        "elapsed": 100,
        "label": "Login",
        "response_code": "200",
        "success": True,
        "thread_name": "T1-1",
    }
    assert second["response_code"] == "500"
    assert second["success"] is False


def test_debug_info_describes_the_parse(scenario_jtl):
    debug = parse_jtl_content(scenario_jtl)["debug_info"]

    assert debug["total_lines"] == 3
    assert debug["detected_delimiter"] == "\t"
    assert debug["detected_headers"] == [
        "timestamp", "elapsed", "label", "responseCode", "success", "threadName",
    ]
    assert debug["parsed_records"] == 2
    assert debug["valid_records"] == 2
    assert debug["sample_record"]["label"] == "Login"


def test_header_only_is_structural_failure():
    result = parse_jtl_content("timestamp\telapsed\tlabel\n")

    assert result["success"] is False
    assert result["records"] == []
    assert result["error"] == STRUCTURAL_ERROR
    assert result["debug_info"]["total_lines"] == 1
    assert result["debug_info"]["valid_records"] == 0


def test_empty_content_is_structural_failure():
    result = parse_jtl_content("   \n  ")
    assert result["success"] is False
    assert result["error"] == STRUCTURAL_ERROR


def test_row_without_time_data_is_rejected():
    content = (
        "timestamp,elapsed,label,responseCode\n"
        ",,Login,200\n"
        "1000,100,Home,200\n"
    )
    result = parse_jtl_content(content)

    assert [r["label"] for r in result["records"]] == ["Home"]
    assert result["debug_info"]["parsed_records"] == 2
    assert result["debug_info"]["valid_records"] == 1


def test_row_without_label_code_or_success_is_rejected():
    content = "timestamp,elapsed,threadName\n1000,100,T1\n"
    result = parse_jtl_content(content)

    assert result["success"] is False
    assert result["error"] == NO_RECORDS_ERROR
    assert result["debug_info"]["parsed_records"] == 1


def test_zero_timestamp_counts_as_missing():
    result = parse_jtl_content("timestamp,label\n0,Login\n")
    assert result["records"] == []


def test_missing_timestamps_are_synthesized_in_decreasing_order(fixed_clock):
    content = "elapsed,label,responseCode\n10,A,200\n20,B,200\n30,C,200\n"
    records = parse_jtl_content(content, clock=fixed_clock)["records"]

    now = fixed_clock()
    assert [r["timestamp"] for r in records] == [now, now - 1000, now - 2000]


def test_missing_elapsed_defaults_to_100():
    records = parse_jtl_content("timestamp,label\n1000,A\n")["records"]
    assert records[0]["elapsed"] == 100


def test_unparsable_elapsed_falls_back_to_default():
    records = parse_jtl_content("timestamp,elapsed,label\n1000,abc,A\n")["records"]
    assert records[0]["elapsed"] == 100


def test_defaults_fill_unset_fields():
    records = parse_jtl_content("timestamp,elapsed,responseCode\n1000,50,404\n")["records"]

    assert records[0]["label"] == "Unknown"
    assert records[0]["response_code"] == "404"
    assert records[0]["success"] is True
    assert records[0]["thread_name"] == "Thread Group 1-1"


def test_truncated_rows_are_skipped():
    content = (
        "timestamp,elapsed,label,responseCode,success\n"
        "1000,100\n"
        "2000,100,A,200,true\n"
    )
    result = parse_jtl_content(content)

    assert len(result["records"]) == 1
    assert result["debug_info"]["parsed_records"] == 2


def test_blank_lines_and_crlf_are_tolerated():
    content = "timestamp,elapsed,label\r\n\r\n1000,10,A\r\n"
    result = parse_jtl_content(content)

    assert result["debug_info"]["detected_headers"] == ["timestamp", "elapsed", "label"]
    assert result["debug_info"]["parsed_records"] == 1
    assert result["records"][0]["label"] == "A"


def test_quoted_label_with_delimiter():
    content = (
        "timeStamp,elapsed,label,responseCode,success\n"
        '1000,20,"Login, step 1",200,true\n'
    )
    records = parse_jtl_content(content)["records"]
    assert records[0]["label"] == "Login, step 1"


def test_every_numeric_tab_row_is_retained():
    rows = "".join(f"{1000 + i}\t{i}\tL{i % 3}\n" for i in range(50))
    content = "timestamp\telapsed\tlabel\n" + rows

    result = parse_jtl_content(content)
    assert len(result["records"]) == 50


def test_standard_jmeter_csv(jmeter_csv):
    result = parse_jtl_content(jmeter_csv)
    first, second, _ = result["records"]

    assert result["debug_info"]["detected_delimiter"] == ","
    assert first["response_code"] == "200"
    assert first["response_message"] == "OK"
    assert first["url"] == "https://example.test/"
    assert first["bytes"] == 2048
    assert first["sent_bytes"] == 512
    assert first["latency"] == 80
    assert first["connect"] == 15
    assert first["all_threads"] == 10
    assert "failure_message" not in first
    assert second["success"] is False
    assert second["failure_message"] == "Assertion failed"
