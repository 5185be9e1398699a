from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from .config import BenchmarkSettings, TestTarget
from .docker_control import ContainerController
from .exceptions import MeasurementToolError

LOGGER = logging.getLogger("hello_bench.load")

LOCUSTFILE = Path(__file__).resolve().with_name("locustfile.py")


@dataclass(frozen=True)
class LoadTestIteration:
    """Artefacts produced by one locust run. Their contents are not parsed."""

    target: TestTarget
    iteration: int
    report_path: Path
    request_log_path: Path
    stats_prefix: Path


class LoadTest:
    """Multi-user load test of every target, driven by an external locust process."""

    def __init__(
        self,
        controller: ContainerController,
        settings: BenchmarkSettings,
        executable: str = "locust",
        locustfile: Path = LOCUSTFILE,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._controller = controller
        self._settings = settings
        self._executable = executable
        self._locustfile = locustfile
        self._sleep = sleep

    def command(self, iteration: LoadTestIteration) -> list[str]:
        load = self._settings.load
        compression = "gzip" if iteration.target.is_compressed else "identity"
        return [
            self._executable,
            "-f",
            str(self._locustfile),
            "--headless",
            "--host",
            self._settings.base_url,
            "--users",
            str(load.users),
            "--spawn-rate",
            f"{load.spawn_rate:g}",
            "--run-time",
            f"{load.total_run_seconds}s",
            "--html",
            str(iteration.report_path),
            "--csv",
            str(iteration.stats_prefix),
            "--exit-code-on-error",
            "0",
            "--compression",
            compression,
            "--request-log",
            str(iteration.request_log_path),
            "--request-timeout",
            f"{load.request_timeout_seconds:g}",
        ]

    def bench_iteration(
        self, target: TestTarget, target_dir: Path, iteration: int
    ) -> LoadTestIteration:
        result = LoadTestIteration(
            target=target,
            iteration=iteration,
            report_path=target_dir / f"report-{iteration}.html",
            request_log_path=target_dir / f"requests-{iteration}.csv",
            stats_prefix=target_dir / f"stats-{iteration}",
        )
        cmd = self.command(result)
        LOGGER.info("Load test iteration %d on target %s", iteration, target.name())
        LOGGER.debug("Running %s", " ".join(cmd))
        try:
            completed = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as exc:
            raise MeasurementToolError(self._executable, None, str(exc)) from exc
        if completed.returncode != 0:
            raise MeasurementToolError(
                self._executable,
                completed.returncode,
                completed.stdout + completed.stderr,
            )
        return result

    def run(self, targets: Sequence[TestTarget], out_dir: Path) -> list[LoadTestIteration]:
        """Run every target through the configured number of iterations.

        Output is partitioned per target under ``out_dir/<target name>/``.
        """
        load = self._settings.load
        iterations: list[LoadTestIteration] = []
        for target in targets:
            with self._controller.run(target):
                target_dir = prepare_target_dir(out_dir / target.name())
                for i in range(1, load.iterations + 1):
                    iterations.append(self.bench_iteration(target, target_dir, i))
                    self._sleep(load.cooldown_seconds)
        return iterations


def prepare_target_dir(target_dir: Path) -> Path:
    """Create ``target_dir`` or empty it of files left by a previous run."""
    if not target_dir.exists():
        target_dir.mkdir(parents=True)
        return target_dir
    for entry in target_dir.iterdir():
        if entry.is_file():
            entry.unlink()
    return target_dir
