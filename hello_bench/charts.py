from __future__ import annotations

import logging
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from .perf import CSV_NAME as PERF_CSV_NAME
from .single import CSV_NAME as SINGLE_CSV_NAME
from .warm_up import REQUESTS_CSV_NAME, START_TIMES_CSV_NAME

LOGGER = logging.getLogger("hello_bench.charts")

sns.set_style("whitegrid")
plt.rcParams["figure.dpi"] = 100
plt.rcParams["savefig.dpi"] = 300
plt.rcParams["font.size"] = 10
plt.rcParams["axes.labelsize"] = 11
plt.rcParams["axes.titlesize"] = 13
plt.rcParams["xtick.labelsize"] = 10
plt.rcParams["ytick.labelsize"] = 10
plt.rcParams["legend.fontsize"] = 9
plt.rcParams["figure.titlesize"] = 14


def render_all(out_dir: Path) -> list[Path]:
    """Render a chart for every result table found under ``out_dir``."""
    rendered: list[Path] = []
    for mode, csv_name in (("single", SINGLE_CSV_NAME), ("perf", PERF_CSV_NAME)):
        df = _read_table(out_dir / mode / csv_name)
        if df is None:
            continue
        rendered.append(
            render_path_metric(
                df,
                "latency_mean_ms",
                "Mean Latency (ms)",
                f"{mode.title()} Latency by Path",
                out_dir / mode / "latency.png",
            )
        )
        rendered.append(
            render_path_metric(
                df,
                "qps_mean",
                "Requests/sec per connection",
                f"{mode.title()} Throughput by Path",
                out_dir / mode / "throughput.png",
            )
        )

    start_times = _read_table(out_dir / "warm_up" / START_TIMES_CSV_NAME)
    if start_times is not None:
        rendered.append(
            render_start_up_latency(start_times, out_dir / "warm_up" / "start_up.png")
        )
    requests_df = _read_table(out_dir / "warm_up" / REQUESTS_CSV_NAME)
    if requests_df is not None:
        rendered.append(
            render_request_sequence(
                requests_df, out_dir / "warm_up" / "request_sequence.png"
            )
        )
    return rendered


def render_path_metric(
    df: pd.DataFrame,
    column: str,
    ylabel: str,
    title: str,
    chart_path: Path,
) -> Path:
    """Grouped bars of one metric per path, one bar per target."""
    path_order = list(dict.fromkeys(df["name"]))
    fig, ax = plt.subplots(figsize=(max(10, len(path_order) * 1.4), 6))
    sns.barplot(
        data=df,
        x="name",
        y=column,
        hue="target",
        order=path_order,
        ax=ax,
        edgecolor="white",
        linewidth=1.5,
    )
    ax.set_xlabel("Path", fontweight="semibold")
    ax.set_ylabel(ylabel, fontweight="semibold")
    ax.set_title(title, fontweight="bold", pad=15)
    ax.tick_params(axis="x", rotation=30)
    ax.grid(True, alpha=0.3, axis="y", linestyle="--")
    _finish_legend(ax, "Target")
    return _save(fig, chart_path)


def render_start_up_latency(df: pd.DataFrame, chart_path: Path) -> Path:
    """Box plot of the time to first successful response per path."""
    fig, ax = plt.subplots(figsize=(12, 6))
    sns.boxplot(
        data=df,
        x="name",
        y="start_up_latency_ms",
        hue="target",
        order=list(dict.fromkeys(df["name"])),
        ax=ax,
        linewidth=1.5,
        width=0.7,
    )
    ax.set_xlabel("Path", fontweight="semibold", labelpad=12)
    ax.set_ylabel("Start-up Latency (ms)", fontweight="semibold", labelpad=12)
    ax.set_ylim(bottom=0)
    ax.set_title("Time to First Successful Response", fontweight="bold", pad=15)
    ax.grid(True, alpha=0.3, linestyle="--", linewidth=0.5, axis="y")
    ax.set_axisbelow(True)
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    _finish_legend(ax, "Target")
    return _save(fig, chart_path)


def render_request_sequence(df: pd.DataFrame, chart_path: Path) -> Path:
    """Mean latency of the n-th request after start-up, per target."""
    summary = (
        df.groupby(["target", "request_number"])["latency_ms"].mean().reset_index()
    )
    fig, ax = plt.subplots(figsize=(10, 6))
    for target, group in summary.groupby("target"):
        ax.plot(
            group["request_number"],
            group["latency_ms"],
            marker="o",
            linewidth=2.5,
            markersize=8,
            label=target,
        )
    ax.set_xticks(np.sort(summary["request_number"].unique()))
    ax.set_yscale("log")
    ax.set_xlabel("Request Number", fontweight="semibold")
    ax.set_ylabel("Mean Latency (ms, log scale)", fontweight="semibold")
    ax.set_title("Latency of Requests After Start-up", fontweight="bold", pad=15)
    ax.grid(True, alpha=0.3, linestyle="--")
    _finish_legend(ax, "Target")
    return _save(fig, chart_path)


def _read_table(path: Path) -> pd.DataFrame | None:
    if not path.is_file():
        return None
    df = pd.read_csv(path)
    if df.empty:
        LOGGER.warning("No rows in %s, skipping chart", path)
        return None
    return df


def _finish_legend(ax: plt.Axes, title: str) -> None:
    ax.legend(
        loc="center left",
        bbox_to_anchor=(1.0, 0.5),
        frameon=True,
        fancybox=True,
        shadow=True,
        title=title,
        title_fontsize=10,
    )


def _save(fig: plt.Figure, chart_path: Path) -> Path:
    plt.tight_layout()
    fig.savefig(chart_path, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    LOGGER.info("Rendering chart %s", chart_path)
    return chart_path
