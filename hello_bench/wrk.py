from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Sequence

from .exceptions import MeasurementToolError

LOGGER = logging.getLogger("hello_bench.wrk")


class WrkRunner:
    """Invoke the ``wrk`` HTTP benchmarking tool and return its text report."""

    def __init__(self, executable: str = "wrk", threads: int = 1) -> None:
        self._executable = executable
        self._threads = threads

    def ensure_available(self) -> None:
        if not shutil.which(self._executable):
            raise MeasurementToolError(self._executable, None, "not found in PATH")

    def command(self, url: str, connections: int, duration: str) -> list[str]:
        return [
            self._executable,
            "-t",
            str(self._threads),
            "-c",
            str(connections),
            "-d",
            duration,
            url,
        ]

    def run(self, url: str, connections: int, duration: str) -> str:
        """Run wrk against ``url`` and return stdout; non-zero exit is fatal."""
        result = self._execute(self.command(url, connections, duration))
        if result.returncode != 0:
            raise MeasurementToolError(
                self._executable, result.returncode, result.stdout + result.stderr
            )
        LOGGER.debug("wrk output for %s:\n%s", url, result.stdout)
        return result.stdout

    def warm_up(self, url: str, connections: int, duration: str) -> None:
        """Run wrk once and discard whatever it reports."""
        result = self._execute(self.command(url, connections, duration))
        LOGGER.debug("Discarded warm-up run for %s (exit %d)", url, result.returncode)

    def _execute(self, cmd: Sequence[str]) -> subprocess.CompletedProcess[str]:
        try:
            return subprocess.run(list(cmd), capture_output=True, text=True)
        except OSError as exc:
            raise MeasurementToolError(self._executable, None, str(exc)) from exc
