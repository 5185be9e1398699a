from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from .config import PERF_PATHS, BenchmarkSettings, TestPath, TestTarget
from .docker_control import ContainerController
from .results import PerfResult, perf_row
from .writer import open_sink
from .wrk import WrkRunner

LOGGER = logging.getLogger("hello_bench.perf")

CSV_NAME = "benchmarks.csv"


class PerformanceSweep:
    """Measure steady-state latency and throughput of every path.

    Each path first receives a short throwaway wrk run so that the measured
    run is not biased by connection set-up or lazy initialisation.
    """

    def __init__(
        self,
        controller: ContainerController,
        wrk: WrkRunner,
        settings: BenchmarkSettings,
        paths: Sequence[TestPath] = PERF_PATHS,
    ) -> None:
        self._controller = controller
        self._wrk = wrk
        self._settings = settings
        self._paths = tuple(paths)

    def bench_path(self, target: TestTarget, path: TestPath) -> PerfResult:
        mode = self._settings.perf
        url = self._settings.url_for(path.path)

        if mode.warm_up_duration:
            self._wrk.warm_up(
                url, connections=mode.connections, duration=mode.warm_up_duration
            )

        output = self._wrk.run(url, connections=mode.connections, duration=mode.duration)
        result = PerfResult.from_wrk_output(target, path, output)
        LOGGER.info("\tLatency: %s", result.latency())
        return result

    def run(self, targets: Sequence[TestTarget], out_dir: Path) -> Path:
        sink = open_sink(out_dir / CSV_NAME)
        for target in targets:
            LOGGER.info("Starting performance benchmark on target %s", target.name())
            with self._controller.run(target):
                for path in self._paths:
                    LOGGER.info("Benchmarking path %s (%s)", path.name, path.path)
                    sink.append(perf_row(self.bench_path(target, path)))
            LOGGER.info("Finished performance benchmark on target %s", target.name())
        return sink.path
