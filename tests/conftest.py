"""Shared test configuration and fixtures for all tests."""

# locust applies gevent monkey-patching on import, which must precede ssl and requests.
import locust  # noqa: F401

import contextlib
from unittest.mock import MagicMock

import pytest

from hello_bench.config import BenchmarkSettings, TestTarget
from .test_const import TEST_SERVER, WRK_OUTPUT


@pytest.fixture
def settings():
    """Settings with a short health deadline."""
    return BenchmarkSettings(health_timeout_seconds=5.0)


@pytest.fixture
def target():
    return TestTarget(server_name=TEST_SERVER, num_cpus=1, ram_mb=128, is_compressed=False)


@pytest.fixture
def compressed_target():
    return TestTarget(server_name=TEST_SERVER, num_cpus=2, ram_mb=256, is_compressed=True)


@pytest.fixture
def mock_controller():
    """Controller whose run() yields a mock container without touching Docker."""
    controller = MagicMock()
    controller.run.side_effect = lambda *args, **kwargs: contextlib.nullcontext(MagicMock())
    return controller


@pytest.fixture
def mock_wrk():
    wrk = MagicMock()
    wrk.run.return_value = WRK_OUTPUT
    return wrk


@pytest.fixture
def mock_docker_client():
    return MagicMock()
