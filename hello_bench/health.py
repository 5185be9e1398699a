from __future__ import annotations

import logging
import time
from typing import Callable

import requests

from .exceptions import HealthTimeoutError

LOGGER = logging.getLogger("hello_bench.health")


class HealthProbe:
    """Polls a target's health endpoint over HTTP."""

    def __init__(
        self,
        url: str,
        request_timeout_seconds: float = 1.0,
        session: requests.Session | None = None,
    ) -> None:
        self._url = url
        self._request_timeout = request_timeout_seconds
        self._session = session or requests.Session()

    @property
    def url(self) -> str:
        return self._url

    def probe(self) -> bool:
        """Return True iff the endpoint answers with a success status."""
        try:
            response = self._session.get(self._url, timeout=self._request_timeout)
        except requests.RequestException:
            return False
        return response.ok

    def await_healthy(
        self,
        timeout_s: float,
        poll_interval_s: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> float:
        """Block until the endpoint is healthy, returning the seconds waited.

        Raises :class:`HealthTimeoutError` once ``timeout_s`` has elapsed
        without a successful response.
        """
        LOGGER.info("Polling %s until healthy", self._url)
        started = clock()
        deadline = started + timeout_s
        attempts = 0
        while True:
            attempts += 1
            if self.probe():
                waited = clock() - started
                LOGGER.info(
                    "Container is ready after %.2fs (%d probes)", waited, attempts
                )
                return waited
            if clock() >= deadline:
                raise HealthTimeoutError(self._url, timeout_s)
            if poll_interval_s > 0:
                sleep(poll_interval_s)

    def close(self) -> None:
        self._session.close()
