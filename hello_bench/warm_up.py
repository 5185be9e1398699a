from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Sequence

import requests

from .config import WARM_UP_PATHS, BenchmarkSettings, TestPath, TestTarget
from .docker_control import ContainerController
from .exceptions import HealthTimeoutError
from .results import (
    WarmUpResult,
    WarmUpResults,
    warm_up_request_rows,
    warm_up_start_time_rows,
)
from .writer import open_sink

LOGGER = logging.getLogger("hello_bench.warm_up")

REQUESTS_CSV_NAME = "request-benchmarks.csv"
START_TIMES_CSV_NAME = "start-time-benchmarks.csv"


class WarmUpBenchmark:
    """Measure cold-start behaviour by restarting the container for every sample.

    For each path and repetition a fresh container is started and the path is
    requested in a tight loop until the first success. The offset between the
    container start and that request is the start-up latency; the first
    success and a few follow-up requests are timed individually.
    """

    def __init__(
        self,
        controller: ContainerController,
        settings: BenchmarkSettings,
        paths: Sequence[TestPath] = WARM_UP_PATHS,
        session: requests.Session | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._controller = controller
        self._settings = settings
        self._paths = tuple(paths)
        self._session = session or requests.Session()
        self._clock = clock
        mode = settings.warm_up
        self._timeout = (mode.connect_timeout_seconds, mode.request_timeout_seconds)

    def bench_path(self, path: TestPath, attempt: int, started_at: float) -> WarmUpResult:
        url = self._settings.url_for(path.path)
        result = self._wait_for_first_response(path, attempt, url, started_at)

        for _ in range(self._settings.warm_up.follow_up_requests):
            request_started = self._clock()
            try:
                self._session.get(url, timeout=self._timeout)
            except requests.RequestException as exc:
                LOGGER.warning("Follow-up request to %s failed: %s", url, exc)
            result.latencies.append(self._clock() - request_started)

        return result

    def run(self, targets: Sequence[TestTarget], out_dir: Path) -> tuple[Path, Path]:
        requests_sink = open_sink(out_dir / REQUESTS_CSV_NAME)
        start_times_sink = open_sink(out_dir / START_TIMES_CSV_NAME)

        for target in targets:
            results = self.bench_target(target)
            requests_sink.extend(warm_up_request_rows(results))
            start_times_sink.extend(warm_up_start_time_rows(results))

        return requests_sink.path, start_times_sink.path

    def bench_target(self, target: TestTarget) -> WarmUpResults:
        results = WarmUpResults(target=target)
        for path in self._paths:
            for attempt in range(1, self._settings.warm_up.repetitions + 1):
                self._controller.remove_if_present(target.name())
                started_at = self._clock()
                with self._controller.run(
                    target, wait_healthy=False, remove=True, pre_delete=False
                ):
                    result = self.bench_path(path, attempt, started_at)
                results.per_path.append(result)
                LOGGER.info(
                    "Benchmarked warm-up %d on path %s. Startup: %.2fms Latencies: %s",
                    attempt,
                    path.name,
                    result.startup_latency * 1000.0,
                    ", ".join(f"{latency * 1000.0:.2f}ms" for latency in result.latencies),
                )
        return results

    def close(self) -> None:
        self._session.close()

    def _wait_for_first_response(
        self, path: TestPath, attempt: int, url: str, started_at: float
    ) -> WarmUpResult:
        deadline = started_at + self._settings.health_timeout_seconds
        while True:
            request_started = self._clock()
            try:
                response = self._session.get(url, timeout=self._timeout)
            except requests.RequestException:
                response = None
            if response is not None and response.ok:
                return WarmUpResult(
                    path=path,
                    attempt=attempt,
                    startup_latency=request_started - started_at,
                    latencies=[self._clock() - request_started],
                )
            if self._clock() >= deadline:
                raise HealthTimeoutError(url, self._settings.health_timeout_seconds)
