from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from .config import SINGLE_PATHS, BenchmarkSettings, TestPath, TestTarget
from .docker_control import ContainerController
from .results import SingleResult, single_row
from .writer import open_sink
from .wrk import WrkRunner

LOGGER = logging.getLogger("hello_bench.single")

CSV_NAME = "single-benchmarks.csv"


class SingleRequestBenchmark:
    """One single-connection wrk run per path, one container per target."""

    def __init__(
        self,
        controller: ContainerController,
        wrk: WrkRunner,
        settings: BenchmarkSettings,
        paths: Sequence[TestPath] = SINGLE_PATHS,
    ) -> None:
        self._controller = controller
        self._wrk = wrk
        self._settings = settings
        self._paths = tuple(paths)

    def bench_path(self, target: TestTarget, path: TestPath) -> SingleResult:
        mode = self._settings.single
        output = self._wrk.run(
            self._settings.url_for(path.path),
            connections=mode.connections,
            duration=mode.duration,
        )
        return SingleResult.from_wrk_output(target, path, output)

    def run(self, targets: Sequence[TestTarget], out_dir: Path) -> Path:
        """Benchmark each target, writing one CSV row per path to ``out_dir``."""
        sink = open_sink(out_dir / CSV_NAME)
        for target in targets:
            LOGGER.info("Starting single-request benchmark on target %s", target.name())
            with self._controller.run(target):
                for path in self._paths:
                    LOGGER.info("Benchmarking path %s", path.name)
                    sink.append(single_row(self.bench_path(target, path)))
            LOGGER.info("Finished single-request benchmark on target %s", target.name())
        return sink.path
