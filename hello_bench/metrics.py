"""
Parsing of wrk summary lines into unit-normalised metrics.

wrk prints a per-thread summary such as::

    Thread Stats   Avg      Stdev     Max   +/- Stdev
      Latency   635.91us    0.89ms  12.92ms   93.69%
      Req/Sec     57.2k       4k      100k    93.69%

Latency tokens are normalised to integer nanoseconds and rate tokens to plain
requests per second. All patterns are compiled once at import time.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Union

from .exceptions import MetricParseError

LOGGER = logging.getLogger("hello_bench.metrics")

_NUMBER = r"\d+(?:\.\d+)?"
_TIME_TOKEN = rf"({_NUMBER}[mun]?s)"
_COUNT_TOKEN = rf"({_NUMBER}[mkMG]?)"

_LATENCY_LABEL = re.compile(r"(?:^|\s)Latency\s")
_QPS_LABEL = re.compile(r"(?:^|\s)Req/Sec\s")

_LATENCY_FIELDS = re.compile(
    rf"Latency\s+{_TIME_TOKEN}\s+{_TIME_TOKEN}\s+{_TIME_TOKEN}"
)
_QPS_FIELDS = re.compile(
    rf"Req/Sec\s+{_COUNT_TOKEN}\s+{_COUNT_TOKEN}\s+{_COUNT_TOKEN}"
)

# Order matters: "ms" also ends in "s", and a bare number must be tried
# after the milli suffix. Suffix matching is case sensitive ("m" vs "M").
_DURATION_UNITS: tuple[tuple[re.Pattern[str], int], ...] = tuple(
    (re.compile(rf"({_NUMBER}){suffix}"), exponent)
    for suffix, exponent in (("ns", 0), ("us", 3), ("ms", 6), ("s", 9))
)
_COUNT_UNITS: tuple[tuple[re.Pattern[str], int], ...] = tuple(
    (re.compile(rf"({_NUMBER}){suffix}"), exponent)
    for suffix, exponent in (("m", -3), ("", 0), ("k", 3), ("M", 6), ("G", 9))
)


@dataclass(frozen=True)
class Latency:
    """Latency summary, all values in nanoseconds."""

    mean: int
    std_dev: int
    max: int

    def as_milliseconds(self) -> tuple[float, float, float]:
        return (
            self.mean / 1_000_000,
            self.std_dev / 1_000_000,
            self.max / 1_000_000,
        )


@dataclass(frozen=True)
class Qps:
    """Throughput summary in requests per second."""

    mean: float
    std_dev: float
    max: float


Metric = Union[Latency, Qps]


def parse_duration(token: str) -> int:
    """Convert a token such as ``"635.91us"`` into whole nanoseconds."""
    for pattern, exponent in _DURATION_UNITS:
        match = pattern.fullmatch(token)
        if match:
            nanos = _scale(float(match.group(1)), exponent)
            return int(nanos + 0.5)
    raise MetricParseError("time", token)


def parse_count(token: str) -> float:
    """Convert a token such as ``"57.2k"`` into a plain float."""
    for pattern, exponent in _COUNT_UNITS:
        match = pattern.fullmatch(token)
        if match:
            return _scale(float(match.group(1)), exponent)
    raise MetricParseError("count", token)


def parse_latency(line: str) -> Latency | None:
    match = _LATENCY_FIELDS.search(line)
    if match is None:
        return None
    mean, std_dev, maximum = (parse_duration(token) for token in match.groups())
    return Latency(mean=mean, std_dev=std_dev, max=maximum)


def parse_qps(line: str) -> Qps | None:
    match = _QPS_FIELDS.search(line)
    if match is None:
        return None
    mean, std_dev, maximum = (parse_count(token) for token in match.groups())
    return Qps(mean=mean, std_dev=std_dev, max=maximum)


def parse_line(line: str) -> Metric | None:
    """Classify a single output line and extract its metric, if any.

    Lines that do not carry a summary label, or whose fields are not in the
    expected mean/stdev/max shape, yield ``None``. A recognised line with an
    unknown unit raises :class:`MetricParseError`.
    """
    if _LATENCY_LABEL.search(line):
        return parse_latency(line)
    if _QPS_LABEL.search(line):
        return parse_qps(line)
    return None


def parse_output(text: str) -> list[Metric]:
    """Return every metric found in ``text``, in line order."""
    return list(_iter_metrics(text.splitlines()))


def find_latency(metrics: Iterable[Metric]) -> Latency | None:
    return next((m for m in metrics if isinstance(m, Latency)), None)


def find_qps(metrics: Iterable[Metric]) -> Qps | None:
    return next((m for m in metrics if isinstance(m, Qps)), None)


def _iter_metrics(lines: Iterable[str]) -> Iterable[Metric]:
    for line in lines:
        metric = parse_line(line)
        if metric is not None:
            LOGGER.debug("Parsed %r from %r", metric, line)
            yield metric


def _scale(value: float, exponent: int) -> float:
    if exponent >= 0:
        return value * 10**exponent
    return value / 10**-exponent
