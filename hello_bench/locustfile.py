"""
Locust scenario for the load-test mode.

Run by ``hello_bench.load`` as an external ``locust --headless`` process. Each
simulated user repeatedly runs one of the request groups in
``LOAD_SCENARIOS``; every individual request is also streamed to the CSV file
given by ``--request-log``.
"""

from __future__ import annotations

import logging
import os
import time

import pandas as pd
from locust import HttpUser, constant, events

from hello_bench.config import LOAD_SCENARIOS, LoadTestSettings, ScenarioGroup

LOGGER = logging.getLogger("hello_bench.locustfile")

USER_AGENT = "hello-bench-load-tester/0.1.0"

REQUEST_LOG_COLUMNS = [
    "elapsed_ts",
    "method",
    "name",
    "url",
    "status_code",
    "response_time_ms",
    "response_length",
    "success",
    "error",
]
FLUSH_ROWS = 1000


class RequestLog:
    """Per-request CSV log, flushed to disk every ``flush_rows`` rows."""

    def __init__(self, path: str | os.PathLike, flush_rows: int = FLUSH_ROWS) -> None:
        self.path = path
        self.rows_written = 0
        self._flush_rows = flush_rows
        self._pending: list[dict] = []
        pd.DataFrame(columns=REQUEST_LOG_COLUMNS).to_csv(self.path, index=False)

    def record(self, row: dict) -> None:
        self._pending.append(row)
        if len(self._pending) >= self._flush_rows:
            self.flush()

    def flush(self) -> None:
        if not self._pending:
            return
        pd.DataFrame(self._pending, columns=REQUEST_LOG_COLUMNS).to_csv(
            self.path, mode="a", header=False, index=False
        )
        self.rows_written += len(self._pending)
        self._pending.clear()

    def close(self) -> None:
        self.flush()


_request_log: RequestLog | None = None


@events.init_command_line_parser.add_listener
def _add_arguments(parser) -> None:
    parser.add_argument(
        "--compression",
        choices=("gzip", "identity"),
        default="identity",
        help="Accept-Encoding sent by every simulated user",
    )
    parser.add_argument(
        "--request-log",
        default="",
        help="CSV file receiving one row per request",
    )
    parser.add_argument(
        "--request-timeout",
        type=float,
        default=LoadTestSettings().request_timeout_seconds,
        help="Seconds before a single request is abandoned",
    )


@events.test_start.add_listener
def _open_request_log(environment, **kwargs) -> None:
    global _request_log
    path = environment.parsed_options.request_log
    _request_log = RequestLog(path) if path else None


@events.request.add_listener
def _record_request(
    request_type, name, response_time, response_length, exception=None, **kwargs
) -> None:
    if _request_log is None:
        return
    response = kwargs.get("response")
    _request_log.record(
        {
            "elapsed_ts": time.time(),
            "method": request_type,
            "name": name,
            "url": kwargs.get("url"),
            "status_code": getattr(response, "status_code", None),
            "response_time_ms": response_time,
            "response_length": response_length,
            "success": exception is None,
            "error": "" if exception is None else str(exception),
        }
    )


@events.test_stop.add_listener
def _close_request_log(environment, **kwargs) -> None:
    global _request_log
    if _request_log is None:
        return
    _request_log.close()
    LOGGER.info("Wrote %d requests to %s", _request_log.rows_written, _request_log.path)
    _request_log = None


def _group_task(group: ScenarioGroup):
    def run_group(user: HttpUser) -> None:
        timeout = user.environment.parsed_options.request_timeout
        for path in group.paths:
            user.client.get(path.path, name=path.name, timeout=timeout)

    run_group.__name__ = group.name
    return run_group


class HelloUser(HttpUser):
    wait_time = constant(0)
    tasks = [_group_task(group) for group in LOAD_SCENARIOS]

    def on_start(self) -> None:
        self.client.headers.update(
            {
                "User-Agent": USER_AGENT,
                "Accept-Encoding": self.environment.parsed_options.compression,
            }
        )
