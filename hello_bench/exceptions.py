"""Exceptions raised by the benchmark harness."""

from __future__ import annotations


class BenchmarkError(Exception):
    """Base class for every fatal condition of a benchmark run."""


class ConfigurationError(BenchmarkError):
    """Raised when the run is misconfigured before any target is touched."""


class LifecycleError(BenchmarkError):
    """Raised when a container cannot be started or stopped."""


class HealthTimeoutError(LifecycleError):
    """Raised when a container does not answer successfully within the deadline."""

    def __init__(self, url: str, timeout_s: float) -> None:
        super().__init__(f"{url} did not become healthy within {timeout_s:.1f}s")
        self.url = url
        self.timeout_s = timeout_s


class MeasurementToolError(BenchmarkError):
    """Raised when an external load generator fails."""

    def __init__(self, tool: str, returncode: int | None, output: str = "") -> None:
        super().__init__(f"Failed to run {tool}; code: {returncode}")
        self.tool = tool
        self.returncode = returncode
        self.output = output


class MetricParseError(BenchmarkError):
    """Raised when a token on a recognised summary line has no known unit."""

    def __init__(self, kind: str, token: str) -> None:
        super().__init__(f"Could not parse {kind} {token!r}")
        self.kind = kind
        self.token = token


class MissingMetricError(BenchmarkError):
    """Raised when a tool output block lacks a latency or throughput summary."""

    def __init__(self, metric: str, output: str) -> None:
        super().__init__(f"No {metric} metric found in output:\n{output}")
        self.metric = metric
        self.output = output
