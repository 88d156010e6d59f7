"""Shared fixtures for the JTL analysis tests."""

import pytest

from jtlanalysis.utils.config import load_config

SCENARIO_JTL = (
    "timestamp\telapsed\tlabel\tresponseCode\tsuccess\tthreadName\n"
    "1000\t100\tLogin\t200\ttrue\tT1-1\n"
    "2000\t200\tLogin\t500\tfalse\tT1-1\n"
)

JMETER_CSV = (
    "timeStamp,elapsed,label,responseCode,responseMessage,threadName,dataType,success,"
    "failureMessage,bytes,sentBytes,grpThreads,allThreads,URL,Latency,IdleTime,Connect\n"
    "1700000000000,120,Home,200,OK,Users 1-1,text,true,,2048,512,5,10,"
    "https://example.test/,80,0,15\n"
    "1700000001000,340,Login,500,Internal Server Error,Users 1-2,text,false,"
    "Assertion failed,1024,256,5,10,https://example.test/login,300,0,20\n"
    "1700000002000,95,Home,200,OK,Users 1-3,text,true,,2048,512,5,10,"
    "https://example.test/,70,0,12\n"
)

FIXED_NOW_MS = 1_700_000_000_000


@pytest.fixture
def scenario_jtl():
    return SCENARIO_JTL


@pytest.fixture
def jmeter_csv():
    return JMETER_CSV


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW_MS


@pytest.fixture
def config():
    return load_config(force_reload=True)


@pytest.fixture
def make_record():
    return _make_record


def _make_record(timestamp=1000, elapsed=100, label="Login", response_code="200", success=True, **extra):
    record = {
        "timestamp": timestamp,
        "elapsed": elapsed,
        "label": label,
        "response_code": response_code,
        "success": success,
        "thread_name": "Thread Group 1-1",
    }
    record.update(extra)
    return record
