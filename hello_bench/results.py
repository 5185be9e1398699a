"""Result records of each mode and their projection into flat CSV rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .config import TestPath, TestTarget
from .exceptions import MissingMetricError
from .metrics import Latency, Metric, Qps, find_latency, find_qps, parse_output

Row = dict[str, Any]


@dataclass
class PathResult:
    """Metrics parsed from one wrk run of one target against one path."""

    target: TestTarget
    path: TestPath
    metrics: list[Metric] = field(default_factory=list)
    raw_output: str = ""

    @classmethod
    def from_wrk_output(cls, target: TestTarget, path: TestPath, output: str):
        return cls(
            target=target, path=path, metrics=parse_output(output), raw_output=output
        )

    def latency(self) -> Latency:
        latency = find_latency(self.metrics)
        if latency is None:
            raise MissingMetricError("latency", self.raw_output)
        return latency

    def qps(self) -> Qps:
        qps = find_qps(self.metrics)
        if qps is None:
            raise MissingMetricError("Req/Sec", self.raw_output)
        return qps


class SingleResult(PathResult):
    """Outcome of the single-connection benchmark of one path."""


class PerfResult(PathResult):
    """Outcome of the warmed-up performance sweep of one path."""


@dataclass
class WarmUpResult:
    """Cold-start sample of one path after a fresh container start.

    ``startup_latency`` is the offset from the container start to the first
    successful response; ``latencies`` holds that response's round trip
    followed by the follow-up requests, in request order. Seconds throughout.
    """

    path: TestPath
    attempt: int
    startup_latency: float
    latencies: list[float] = field(default_factory=list)


@dataclass
class WarmUpResults:
    target: TestTarget
    per_path: list[WarmUpResult] = field(default_factory=list)


def single_row(result: SingleResult) -> Row:
    return _path_result_row(result)


def perf_row(result: PerfResult) -> Row:
    return _path_result_row(result)


def warm_up_start_time_rows(results: WarmUpResults) -> list[Row]:
    return [
        {
            **_identity(path_result.path, results.target),
            "attempt": path_result.attempt,
            "start_up_latency_ms": path_result.startup_latency * 1000.0,
        }
        for path_result in results.per_path
    ]


def warm_up_request_rows(results: WarmUpResults) -> list[Row]:
    return [
        {
            **_identity(path_result.path, results.target),
            "attempt": path_result.attempt,
            "request_number": index,
            "latency_ms": latency * 1000.0,
        }
        for path_result in results.per_path
        for index, latency in enumerate(path_result.latencies, start=1)
    ]


def _path_result_row(result: PathResult) -> Row:
    # Both lookups happen before building the row so that a missing metric
    # never yields a partial row.
    latency = result.latency()
    qps = result.qps()
    mean_ms, std_dev_ms, max_ms = latency.as_milliseconds()
    return {
        **_identity(result.path, result.target),
        "latency_mean_ms": mean_ms,
        "latency_std_dev_ms": std_dev_ms,
        "latency_max_ms": max_ms,
        "qps_mean": qps.mean,
        "qps_std_dev": qps.std_dev,
        "qps_max": qps.max,
    }


def _identity(path: TestPath, target: TestTarget) -> Row:
    return {
        "name": path.name,
        "path": path.path,
        "server_name": target.server_name,
        "num_cpus": target.num_cpus,
        "ram_mb": target.ram_mb,
        "target": target.name(),
    }
