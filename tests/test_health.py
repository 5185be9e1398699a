"""Unit tests for the HTTP health probe."""

import itertools
from unittest.mock import MagicMock

import pytest
import requests

from hello_bench.exceptions import HealthTimeoutError
from hello_bench.health import HealthProbe

URL = "http://localhost:8080/strings/hello"


def _probe(*responses):
    session = MagicMock()
    session.get.side_effect = list(responses)
    return HealthProbe(URL, request_timeout_seconds=0.5, session=session), session


def test_probe_success():
    probe, session = _probe(MagicMock(ok=True))

    assert probe.probe() is True
    session.get.assert_called_once_with(URL, timeout=0.5)


def test_probe_error_status():
    probe, _ = _probe(MagicMock(ok=False))

    assert probe.probe() is False


def test_probe_connection_error():
    probe, _ = _probe(requests.ConnectionError("refused"))

    assert probe.probe() is False


def test_await_healthy_polls_until_success():
    probe, session = _probe(
        requests.ConnectionError("refused"),
        MagicMock(ok=False),
        MagicMock(ok=True),
    )
    clock = itertools.count().__next__
    sleep = MagicMock()

    probe.await_healthy(timeout_s=100, poll_interval_s=0.25, clock=clock, sleep=sleep)

    assert session.get.call_count == 3
    assert sleep.call_count == 2
    sleep.assert_called_with(0.25)


def test_await_healthy_tight_loop_does_not_sleep():
    probe, _ = _probe(MagicMock(ok=False), MagicMock(ok=True))
    sleep = MagicMock()

    probe.await_healthy(timeout_s=100, clock=itertools.count().__next__, sleep=sleep)

    sleep.assert_not_called()


def test_await_healthy_is_bounded():
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("refused")
    probe = HealthProbe(URL, session=session)

    with pytest.raises(HealthTimeoutError) as excinfo:
        probe.await_healthy(timeout_s=3, clock=itertools.count().__next__, sleep=MagicMock())

    assert excinfo.value.url == URL
    assert excinfo.value.timeout_s == 3
    assert session.get.call_count < 10


def test_close_closes_session():
    session = MagicMock()
    HealthProbe("http://localhost:8080/strings/hello", session=session).close()

    session.close.assert_called_once_with()
