from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

DEFAULT_PORT = 8080
HEALTH_PATH = "/strings/hello"

_LONG_NAME = "a" * 256
_LOAD_LONG_NAME = "a" * 499


@dataclass(frozen=True)
class TestTarget:
    """One server variant under test."""

    __test__ = False

    server_name: str
    num_cpus: int
    ram_mb: int
    is_compressed: bool

    def __post_init__(self) -> None:
        if self.num_cpus <= 0:
            raise ValueError("TestTarget num_cpus must be > 0")
        if self.ram_mb <= 0:
            raise ValueError("TestTarget ram_mb must be > 0")

    def docker_target(self) -> str:
        """Image tag the target is expected to be built as."""
        return f"hello-{self.server_name}"

    def name(self) -> str:
        """Unique name used for the container and output partitions."""
        compression = "compressed" if self.is_compressed else "uncompressed"
        # Docker rejects container names containing "/".
        return (
            f"{self.server_name.replace('/', '-')}-{compression}"
            f"-cpus-{self.num_cpus}-ram-{self.ram_mb}m"
        )


@dataclass(frozen=True)
class TestPath:
    """A URL path (with query) and the short label used in result rows."""

    __test__ = False

    path: str
    name: str


@dataclass(frozen=True)
class ModeSettings:
    """Timing of the wrk based modes."""

    duration: str
    warm_up_duration: str | None = None
    connections: int = 1


@dataclass(frozen=True)
class LoadTestSettings:
    users: int = 6
    startup_seconds: int = 60
    run_seconds: int = 10
    iterations: int = 2
    cooldown_seconds: float = 5.0
    request_timeout_seconds: float = 10.0

    @property
    def spawn_rate(self) -> float:
        if self.startup_seconds <= 0:
            return float(self.users)
        return self.users / self.startup_seconds

    @property
    def total_run_seconds(self) -> int:
        # locust counts the ramp-up as part of --run-time.
        return self.startup_seconds + self.run_seconds


@dataclass(frozen=True)
class WarmUpSettings:
    repetitions: int = 3
    follow_up_requests: int = 5
    connect_timeout_seconds: float = 0.01
    request_timeout_seconds: float = 1.0


@dataclass(frozen=True)
class ScenarioGroup:
    """Named group of requests issued back to back by one load-test task."""

    name: str
    paths: Sequence[TestPath]


@dataclass(frozen=True)
class BenchmarkSettings:
    """Settings shared by every mode of a run."""

    host: str = "localhost"
    port: int = DEFAULT_PORT
    health_path: str = HEALTH_PATH
    health_timeout_seconds: float = 60.0
    health_poll_interval_seconds: float = 0.0
    single: ModeSettings = field(default_factory=lambda: ModeSettings(duration="30s"))
    perf: ModeSettings = field(
        default_factory=lambda: ModeSettings(duration="10s", warm_up_duration="1s")
    )
    load: LoadTestSettings = field(default_factory=LoadTestSettings)
    warm_up: WarmUpSettings = field(default_factory=WarmUpSettings)

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def health_url(self) -> str:
        return self.url_for(self.health_path)

    def url_for(self, path: str) -> str:
        return f"{self.base_url}{path}"


SINGLE_PATHS: tuple[TestPath, ...] = (
    TestPath("/strings/hello", "hello"),
    TestPath("/strings/hello?name=fluffy%20dog", "hello-param"),
    TestPath(f"/strings/hello?name={_LONG_NAME}", "hello-long"),
    TestPath("/strings/lines?n=10000", "lines"),
    TestPath("/static/scout.webp", "static-img"),
    TestPath("/static/basic.html", "static-text"),
    TestPath("/math/power-reciprocals-alt?n=10000", "math-powers-light"),
    TestPath("/math/power-reciprocals-alt?n=10000000", "math-powers-heavy"),
)

PERF_PATHS: tuple[TestPath, ...] = (
    TestPath("/strings/hello", "hello"),
    TestPath("/strings/hello?name=fluffy%20dog", "hello-param"),
    TestPath(f"/strings/hello?name={_LONG_NAME}", "hello-long"),
    TestPath("/strings/async-hello", "async-hello"),
    TestPath("/strings/lines?n=10000", "lines"),
    TestPath("/static/scout.webp", "static-img"),
    TestPath("/static/basic.html", "static-text"),
    TestPath("/math/power-reciprocals-alt?n=10000", "math-powers-light"),
    TestPath("/math/power-reciprocals-alt?n=10000000", "math-powers-heavy"),
)

WARM_UP_PATHS: tuple[TestPath, ...] = (
    TestPath("/strings/hello", "hello"),
    TestPath("/strings/lines?n=50000", "lines"),
    TestPath("/static/basic.html", "static-text"),
    TestPath("/math/power-reciprocals-alt?n=1000000", "powers-sum"),
)

LOAD_SCENARIOS: tuple[ScenarioGroup, ...] = (
    ScenarioGroup(
        name="strings",
        paths=(
            TestPath("/strings/hello", "hello"),
            TestPath("/strings/hello?name=cool%20gal", "hello-param"),
            TestPath(f"/strings/hello?name={_LOAD_LONG_NAME}", "hello-long"),
            TestPath("/strings/async-hello", "async-hello"),
            TestPath("/strings/lines?n=10000", "lines"),
        ),
    ),
    ScenarioGroup(
        name="static",
        paths=(
            TestPath("/static/basic.html", "basic-html"),
            TestPath("/static/scout.webp", "scout-img"),
        ),
    ),
    ScenarioGroup(
        name="math",
        paths=(
            TestPath("/math/power-reciprocals-alt?n=1000", "power-sum-easy"),
            TestPath("/math/power-reciprocals-alt?n=10000000", "power-sum-hard"),
        ),
    ),
)


def build_targets(
    server_names: Iterable[str],
    num_cpus: int = 1,
    ram_mb: int = 128,
    is_compressed: bool = False,
) -> list[TestTarget]:
    """Expand server names into targets sharing the same resource limits."""

    targets = [
        TestTarget(
            server_name=server_name,
            num_cpus=num_cpus,
            ram_mb=ram_mb,
            is_compressed=is_compressed,
        )
        for server_name in server_names
    ]
    names = [target.name() for target in targets]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise ValueError(f"Duplicate targets: {', '.join(duplicates)}")
    return targets
