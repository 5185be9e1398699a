"""Unit tests for the locust scenario run by the load-test mode."""

from types import SimpleNamespace
from unittest.mock import MagicMock, call

import pandas as pd
import pytest

from hello_bench import locustfile
from hello_bench.config import LOAD_SCENARIOS
from hello_bench.locustfile import (
    REQUEST_LOG_COLUMNS,
    USER_AGENT,
    HelloUser,
    RequestLog,
    _close_request_log,
    _group_task,
    _open_request_log,
    _record_request,
)


def _user(compression="identity", request_timeout=10.0):
    user = MagicMock()
    user.client.headers = {}
    user.environment.parsed_options = SimpleNamespace(
        compression=compression, request_timeout=request_timeout
    )
    return user


def _environment(request_log):
    return SimpleNamespace(parsed_options=SimpleNamespace(request_log=request_log))


@pytest.fixture(autouse=True)
def no_open_request_log():
    yield
    locustfile._request_log = None


@pytest.mark.parametrize("compression", ["gzip", "identity"])
def test_on_start_sets_accept_encoding(compression):
    user = _user(compression=compression)

    HelloUser.on_start(user)

    assert user.client.headers == {"User-Agent": USER_AGENT, "Accept-Encoding": compression}


def test_one_task_per_scenario_group():
    assert [task.__name__ for task in HelloUser.tasks] == [group.name for group in LOAD_SCENARIOS]


@pytest.mark.parametrize("group", LOAD_SCENARIOS, ids=lambda group: group.name)
def test_group_task_requests_paths_in_order(group):
    user = _user(request_timeout=2.5)

    _group_task(group)(user)

    assert user.client.get.call_args_list == [
        call(path.path, name=path.name, timeout=2.5) for path in group.paths
    ]


def test_request_log_streams_rows(tmp_path):
    path = tmp_path / "requests-1.csv"
    environment = _environment(str(path))

    _open_request_log(environment)
    _record_request("GET", "hello", 1.5, 12, url="http://localhost:8080/strings/hello", response=SimpleNamespace(status_code=200))
    _record_request("GET", "hello", 3.0, 0, exception=ConnectionError("refused"), url="http://localhost:8080/strings/hello")
    _close_request_log(environment)

    df = pd.read_csv(path)
    assert list(df.columns) == REQUEST_LOG_COLUMNS
    assert df["response_time_ms"].tolist() == [1.5, 3.0]
    assert df["success"].tolist() == [True, False]
    assert df["status_code"].iloc[0] == 200
    assert df["error"].iloc[1] == "refused"
    assert locustfile._request_log is None


def test_empty_request_log_keeps_header(tmp_path):
    path = tmp_path / "requests-1.csv"
    environment = _environment(str(path))

    _open_request_log(environment)
    _close_request_log(environment)

    df = pd.read_csv(path)
    assert list(df.columns) == REQUEST_LOG_COLUMNS
    assert df.empty


def test_request_log_is_flushed_in_chunks(tmp_path):
    path = tmp_path / "requests-1.csv"
    log = RequestLog(path, flush_rows=2)

    for i in range(3):
        log.record(dict.fromkeys(REQUEST_LOG_COLUMNS, i))

    assert log.rows_written == 2
    assert len(pd.read_csv(path)) == 2
    log.close()
    assert log.rows_written == 3
    assert pd.read_csv(path)["name"].tolist() == [0, 1, 2]


def test_requests_are_ignored_without_a_log(tmp_path):
    _open_request_log(_environment(""))

    _record_request("GET", "hello", 1.0, 12)
    _close_request_log(_environment(""))

    assert list(tmp_path.iterdir()) == []
