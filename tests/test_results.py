"""Unit tests for result records and their row projections."""

import pytest

from hello_bench.config import TestPath
from hello_bench.exceptions import MissingMetricError
from hello_bench.results import (
    PerfResult,
    SingleResult,
    WarmUpResult,
    WarmUpResults,
    perf_row,
    single_row,
    warm_up_request_rows,
    warm_up_start_time_rows,
)
from .test_const import LATENCY_LINE, WRK_OUTPUT, WRK_OUTPUT_NO_QPS

HELLO = TestPath("/strings/hello", "hello")
LINES = TestPath("/strings/lines?n=50000", "lines")


def test_perf_row(target):
    row = perf_row(PerfResult.from_wrk_output(target, HELLO, WRK_OUTPUT))

    assert list(row) == [
        "name",
        "path",
        "server_name",
        "num_cpus",
        "ram_mb",
        "target",
        "latency_mean_ms",
        "latency_std_dev_ms",
        "latency_max_ms",
        "qps_mean",
        "qps_std_dev",
        "qps_max",
    ]
    assert row["name"] == "hello"
    assert row["path"] == "/strings/hello"
    assert row["server_name"] == "python/flask"
    assert row["num_cpus"] == 1
    assert row["ram_mb"] == 128
    assert row["target"] == target.name()
    assert row["latency_mean_ms"] == pytest.approx(0.63591)
    assert row["latency_std_dev_ms"] == pytest.approx(0.89)
    assert row["latency_max_ms"] == pytest.approx(12.92)
    assert row["qps_mean"] == pytest.approx(57_200.0)
    assert row["qps_std_dev"] == pytest.approx(4_000.0)
    assert row["qps_max"] == pytest.approx(100_000.0)


def test_from_wrk_output_keeps_result_type(target):
    result = SingleResult.from_wrk_output(target, HELLO, WRK_OUTPUT)

    assert isinstance(result, SingleResult)
    assert result.raw_output == WRK_OUTPUT
    assert single_row(result) == perf_row(PerfResult.from_wrk_output(target, HELLO, WRK_OUTPUT))


def test_missing_qps_fails_row_construction(target):
    result = PerfResult.from_wrk_output(target, HELLO, WRK_OUTPUT_NO_QPS)

    with pytest.raises(MissingMetricError) as excinfo:
        perf_row(result)
    assert excinfo.value.metric == "Req/Sec"
    assert excinfo.value.output == WRK_OUTPUT_NO_QPS


def test_missing_latency_fails_row_construction(target):
    result = SingleResult.from_wrk_output(target, HELLO, "Requests/sec: 12.0\n")

    assert result.metrics == []
    with pytest.raises(MissingMetricError, match="latency"):
        single_row(result)


def test_latency_only_block_fails_row_construction(target):
    with pytest.raises(MissingMetricError):
        perf_row(PerfResult.from_wrk_output(target, HELLO, LATENCY_LINE))


def _warm_up_results(target):
    return WarmUpResults(
        target=target,
        per_path=[
            WarmUpResult(path=HELLO, attempt=1, startup_latency=0.5, latencies=[0.25, 0.001]),
            WarmUpResult(path=HELLO, attempt=2, startup_latency=0.75, latencies=[0.125]),
            WarmUpResult(path=LINES, attempt=1, startup_latency=1.0, latencies=[0.5, 0.002, 0.003]),
        ],
    )


def test_warm_up_start_time_rows(target):
    rows = warm_up_start_time_rows(_warm_up_results(target))

    assert [(r["name"], r["attempt"]) for r in rows] == [("hello", 1), ("hello", 2), ("lines", 1)]
    assert [r["start_up_latency_ms"] for r in rows] == pytest.approx([500.0, 750.0, 1000.0])
    assert all(r["target"] == target.name() for r in rows)
    assert rows[2]["path"] == "/strings/lines?n=50000"


def test_warm_up_request_rows_keep_request_order(target):
    rows = warm_up_request_rows(_warm_up_results(target))

    assert len(rows) == 6
    assert [(r["name"], r["attempt"], r["request_number"]) for r in rows] == [
        ("hello", 1, 1),
        ("hello", 1, 2),
        ("hello", 2, 1),
        ("lines", 1, 1),
        ("lines", 1, 2),
        ("lines", 1, 3),
    ]
    assert [r["latency_ms"] for r in rows] == pytest.approx([250.0, 1.0, 125.0, 500.0, 2.0, 3.0])
