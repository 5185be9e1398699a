from __future__ import annotations

import contextlib
import logging

import docker
from docker.errors import DockerException, NotFound
from docker.models.containers import Container

from .config import BenchmarkSettings, TestTarget
from .exceptions import LifecycleError
from .health import HealthProbe

LOGGER = logging.getLogger("hello_bench.docker")

CONTAINER_PORT = "8080/tcp"


class ContainerController:
    """Drive one target container through start, health gate and teardown.

    Exactly one benchmark container is expected to hold the published port at
    a time, so every start is preceded by removing any container left behind
    under the same name.
    """

    def __init__(
        self,
        settings: BenchmarkSettings,
        client: docker.DockerClient | None = None,
        probe: HealthProbe | None = None,
        stop_timeout_seconds: int = 10,
    ) -> None:
        self._settings = settings
        self._client = client if client is not None else _docker_client()
        self._probe = probe if probe is not None else HealthProbe(settings.health_url)
        self._stop_timeout = stop_timeout_seconds

    def run(
        self,
        target: TestTarget,
        wait_healthy: bool = True,
        remove: bool = False,
        pre_delete: bool = True,
    ) -> contextlib.AbstractContextManager[Container]:
        return _TargetContext(self, target, wait_healthy, remove, pre_delete)

    def start(self, target: TestTarget, pre_delete: bool = True) -> Container:
        name = target.name()
        image = target.docker_target()
        memory = f"{target.ram_mb}m"

        if pre_delete:
            self.remove_if_present(name)

        LOGGER.info("Starting container %s with image %s", name, image)
        try:
            return self._client.containers.run(
                image,
                name=name,
                detach=True,
                mem_limit=memory,
                memswap_limit=memory,
                nano_cpus=int(target.num_cpus * 1_000_000_000),
                ports={CONTAINER_PORT: self._settings.port},
            )
        except DockerException as exc:
            raise LifecycleError(f"Failed to start container {name}: {exc}") from exc

    def stop(self, container: Container, remove: bool = False) -> None:
        LOGGER.info("Stopping container %s", container.name)
        try:
            container.stop(timeout=self._stop_timeout)
            if remove:
                container.remove(force=True)
        except DockerException as exc:
            raise LifecycleError(
                f"Failed to stop container {container.name}: {exc}"
            ) from exc

    def remove_if_present(self, name: str) -> None:
        LOGGER.info("Deleting container %s", name)
        try:
            self._client.containers.get(name).remove(force=True)
        except NotFound:
            LOGGER.debug("No container named %s to delete", name)
        except DockerException as exc:
            raise LifecycleError(f"Failed to delete container {name}: {exc}") from exc

    def await_healthy(self) -> float:
        return self._probe.await_healthy(
            timeout_s=self._settings.health_timeout_seconds,
            poll_interval_s=self._settings.health_poll_interval_seconds,
        )

    def close(self) -> None:
        self._probe.close()
        self._client.close()


def _docker_client() -> docker.DockerClient:
    try:
        return docker.from_env()
    except DockerException as exc:
        raise LifecycleError(f"Cannot connect to the Docker daemon: {exc}") from exc


class _TargetContext(contextlib.AbstractContextManager[Container]):
    def __init__(
        self,
        controller: ContainerController,
        target: TestTarget,
        wait_healthy: bool,
        remove: bool,
        pre_delete: bool,
    ) -> None:
        self._controller = controller
        self._target = target
        self._wait_healthy = wait_healthy
        self._remove = remove
        self._pre_delete = pre_delete
        self._container: Container | None = None

    def __enter__(self) -> Container:
        container = self._controller.start(self._target, pre_delete=self._pre_delete)
        self._container = container
        if self._wait_healthy:
            try:
                self._controller.await_healthy()
            except BaseException:
                self._teardown_after_failure()
                raise
        return container

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._container is None:
            return
        if exc_type is None:
            self._controller.stop(self._container, remove=self._remove)
        else:
            self._teardown_after_failure()

    def _teardown_after_failure(self) -> None:
        # The body's exception keeps propagating; a failed stop is only logged.
        try:
            self._controller.stop(self._container, remove=self._remove)
        except LifecycleError:
            LOGGER.exception("Teardown of %s failed", self._target.name())
