from __future__ import annotations

import argparse
import contextlib
import logging
import os
import sys
from pathlib import Path

from .config import (
    LOAD_SCENARIOS,
    PERF_PATHS,
    SINGLE_PATHS,
    WARM_UP_PATHS,
    BenchmarkSettings,
    TestTarget,
    build_targets,
)
from .exceptions import BenchmarkError, ConfigurationError

LOGGER = logging.getLogger("hello_bench")

MODES = ("single", "perf", "load", "warm_up")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Runs benchmarks for the specified hello-world servers"
    )
    parser.add_argument(
        "-t",
        "--target",
        dest="targets",
        action="append",
        default=None,
        help=(
            'Server to benchmark, as "language/framework". Must match a docker '
            'image tagged "hello-language/framework". Can be given multiple times.'
        ),
    )
    parser.add_argument(
        "--compress",
        action="store_true",
        default=_env_flag("HELLO_BENCH_COMPRESS"),
        help="Accept compressed responses",
    )
    parser.add_argument("--single", action="store_true", help="Run single-request benchmarks")
    parser.add_argument("--perf", action="store_true", help="Run the performance sweep")
    parser.add_argument("--load", action="store_true", help="Run load tests")
    parser.add_argument(
        "--warm-up", action="store_true", help="Run cold-start warm-up benchmarks"
    )
    parser.add_argument(
        "-o",
        "--out-dir",
        default=os.environ.get("HELLO_BENCH_OUT_DIR"),
        help="Where to write the output data",
    )
    parser.add_argument(
        "--cpus",
        type=int,
        default=int(os.environ.get("HELLO_BENCH_CPUS", "1")),
        help="CPUs allotted to each server container",
    )
    parser.add_argument(
        "--ram-mb",
        type=int,
        default=int(os.environ.get("HELLO_BENCH_RAM_MB", "128")),
        help="Memory (and swap) limit of each server container, in MB",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("HELLO_BENCH_PORT", "8080")),
        help="Host port the server container is published on",
    )
    parser.add_argument(
        "--health-timeout",
        type=float,
        default=float(os.environ.get("HELLO_BENCH_HEALTH_TIMEOUT", "60")),
        help="Seconds to wait for a started container to answer",
    )
    parser.add_argument(
        "--charts",
        action="store_true",
        help="Render PNG charts from the result tables once all modes finish",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only print the planned benchmarks without executing them",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("HELLO_BENCH_LOG_LEVEL", "INFO"),
        help="Logging level",
    )
    args = parser.parse_args(argv)
    if args.targets is None:
        env_targets = os.environ.get("HELLO_BENCH_TARGETS", "")
        args.targets = [t.strip() for t in env_targets.split(",") if t.strip()]
    return args


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def prep_out_dir(out_dir: str | os.PathLike | None) -> Path:
    """Return ``out_dir`` as a directory, creating it if needed."""
    if not out_dir:
        raise ConfigurationError("An output directory is required (--out-dir)")
    path = Path(out_dir)
    if path.is_dir():
        return path
    if path.exists():
        raise ConfigurationError(
            f"out_dir {out_dir} already exists, but is not a directory"
        )
    path.mkdir(parents=True)
    return path


def prep_mode_dir(out_dir: Path, mode: str) -> Path:
    return prep_out_dir(out_dir / mode)


def selected_modes(args: argparse.Namespace) -> list[str]:
    return [mode for mode in MODES if getattr(args, mode)]


def build_settings(args: argparse.Namespace) -> BenchmarkSettings:
    if args.health_timeout <= 0:
        raise ConfigurationError("--health-timeout must be > 0")
    return BenchmarkSettings(port=args.port, health_timeout_seconds=args.health_timeout)


def run_modes(
    modes: list[str],
    targets: list[TestTarget],
    out_dir: Path,
    settings: BenchmarkSettings,
) -> None:
    from .docker_control import ContainerController
    from .load import LoadTest
    from .perf import PerformanceSweep
    from .single import SingleRequestBenchmark
    from .warm_up import WarmUpBenchmark
    from .wrk import WrkRunner

    mode_dirs = {mode: prep_mode_dir(out_dir, mode) for mode in modes}
    controller = ContainerController(settings)
    wrk = WrkRunner()
    if {"single", "perf"} & set(modes):
        wrk.ensure_available()

    with contextlib.closing(controller):
        for mode in modes:
            mode_dir = mode_dirs[mode]
            LOGGER.info("Running %s benchmarks into %s", mode, mode_dir)
            if mode == "single":
                SingleRequestBenchmark(controller, wrk, settings).run(targets, mode_dir)
            elif mode == "perf":
                PerformanceSweep(controller, wrk, settings).run(targets, mode_dir)
            elif mode == "load":
                LoadTest(controller, settings).run(targets, mode_dir)
            elif mode == "warm_up":
                with contextlib.closing(WarmUpBenchmark(controller, settings)) as bench:
                    bench.run(targets, mode_dir)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        modes = selected_modes(args)
        if not modes:
            raise ConfigurationError(
                "Select at least one of --single, --perf, --load or --warm-up"
            )
        if not args.targets:
            raise ConfigurationError("At least one --target is required")
        try:
            targets = build_targets(
                args.targets,
                num_cpus=args.cpus,
                ram_mb=args.ram_mb,
                is_compressed=args.compress,
            )
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
        settings = build_settings(args)

        if args.dry_run:
            _print_plan(modes, targets)
            return 0

        out_dir = prep_out_dir(args.out_dir)
        LOGGER.info("Benchmark output directory: %s", out_dir)
        LOGGER.info("Targets: %s", ", ".join(target.name() for target in targets))

        run_modes(modes, targets, out_dir, settings)

        if args.charts:
            from .charts import render_all

            render_all(out_dir)
    except BenchmarkError as exc:
        LOGGER.error("Benchmark failed: %s", exc)
        return 1

    return 0


def _print_plan(modes: list[str], targets: list[TestTarget]) -> None:
    catalogs = {
        "single": [path.name for path in SINGLE_PATHS],
        "perf": [path.name for path in PERF_PATHS],
        "load": [group.name for group in LOAD_SCENARIOS],
        "warm_up": [path.name for path in WARM_UP_PATHS],
    }
    for target in targets:
        print(f"Target: {target.name()} (image {target.docker_target()})")
    for mode in modes:
        print(f"Mode: {mode}")
        print(f"  - {', '.join(catalogs[mode])}")


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in {"1", "true", "yes"}


if __name__ == "__main__":
    sys.exit(main())
