from __future__ import annotations

from importlib import metadata
from pathlib import Path
from typing import Mapping, Sequence

import matplotlib

matplotlib.use("Agg")  # ensure headless, deterministic output
import matplotlib.path as mpath
import matplotlib.pyplot as plt
from matplotlib.patches import FancyArrowPatch, Patch
from matplotlib.ticker import MaxNLocator

from .task_models import Schedule

CRITICAL_COLOR = "#d62728"
ACTIVE_COLOR = "#1f77b4"
SLACK_COLOR = "#c6dbef"
ARROW_COLOR = "#3a3a3a"
ROUTE_X_PAD = 0.25  # horizontal gap from bar edges to the connector elbow
FONT_SCALE = 1.0
TITLE_FONT = 14 * FONT_SCALE
LABEL_FONT = 10 * FONT_SCALE
FOOTER_FONT = 8 * FONT_SCALE
TICK_FONT = 9 * FONT_SCALE
TOP_MARGIN_FRAC = 0.85
TITLE_Y = 0.985
ROW_HEIGHT = 0.6


def render_gantt(
    schedule: Schedule,
    out_path: str,
    title: str,
    dependencies: Mapping[str, Sequence[str]] | None = None,
) -> None:
    """
    Render a static SVG timeline of a computed schedule to `out_path`.

    - One bar per task over [ES, EF); critical tasks use CRITICAL_COLOR.
    - Non-critical tasks show their slack window up to LF as a pale bar.
    - `dependencies` maps task id to predecessor ids and drives the arrows.
    """

    if not schedule.tasks:
        raise ValueError("schedule must not be empty")

    rows = schedule.tasks
    horizon = max(schedule.horizon, 1)
    fig_height = max(3.0, ROW_HEIGHT * len(rows) + 2.0)
    fig_width = max(10.0, min(24.0, horizon / 2.0 + 6.0))
    fig = plt.figure(figsize=(fig_width, fig_height))
    gs = fig.add_gridspec(1, 2, width_ratios=[1.0, 4.0], wspace=0.05, left=0.04, right=0.98, top=TOP_MARGIN_FRAC, bottom=0.1)
    label_ax = fig.add_subplot(gs[0, 0])
    ax = fig.add_subplot(gs[0, 1], sharey=label_ax)

    ax.set_ylim(-1, len(rows))
    ax.invert_yaxis()
    ax.set_xlim(0, horizon)
    ax.xaxis.tick_top()
    ax.xaxis.set_major_locator(MaxNLocator(integer=True))
    ax.grid(True, axis="x", which="major", linestyle="--", alpha=0.4)
    ax.tick_params(axis="x", labelsize=TICK_FONT, pad=4)
    ax.set_yticks([])

    label_ax.set_xlim(0, 1)
    label_ax.axis("off")

    fig.suptitle(title, x=0.5, fontsize=TITLE_FONT, y=TITLE_Y)
    footer = f"CPM scheduler v{_tool_version()} - horizon {schedule.horizon}"
    fig.text(0.99, 0.01, footer, ha="right", va="bottom", fontsize=FOOTER_FONT, alpha=0.8)

    positions: dict[str, tuple[float, float, float]] = {}  # id -> (x_start, x_finish, y)
    for y, task in enumerate(rows):
        label_ax.text(
            0.98,
            y,
            task.task_id,
            ha="right",
            va="center",
            fontsize=LABEL_FONT,
            fontweight="bold" if task.critical else "normal",
            transform=label_ax.transData,
        )
        if task.slack > 0:
            ax.barh(y, width=task.lf - task.ef, left=task.ef, height=ROW_HEIGHT / 2, color=SLACK_COLOR, linewidth=0)
        ax.barh(
            y,
            width=task.duration,
            left=task.es,
            height=ROW_HEIGHT,
            color=CRITICAL_COLOR if task.critical else ACTIVE_COLOR,
            edgecolor="black",
            linewidth=0.5,
        )
        positions[task.task_id] = (task.es, task.ef, y)

    _draw_dependencies(ax, positions, dependencies or {})

    ax.legend(
        handles=[
            Patch(color=CRITICAL_COLOR, label="critical"),
            Patch(color=ACTIVE_COLOR, label="active"),
            Patch(color=SLACK_COLOR, label="slack"),
        ],
        loc="lower right",
        fontsize=FOOTER_FONT,
    )

    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path, format="svg", bbox_inches="tight")
    plt.close(fig)


def _tool_version() -> str:
    try:
        return metadata.version("cpm-scheduler")
    except metadata.PackageNotFoundError:
        return "0.0.0"


def _elbow_route(source: tuple[float, float, float], target: tuple[float, float, float]) -> list[tuple[float, float]]:
    """Route from the end of `source` to the start of `target` with right-angle segments."""
    _, src_finish, src_y = source
    tgt_start, _, tgt_y = target
    elbow_x = max(src_finish, tgt_start - ROUTE_X_PAD)
    points = [(src_finish, src_y), (elbow_x, src_y), (elbow_x, tgt_y), (tgt_start, tgt_y)]
    return _dedupe_points(points)


def _dedupe_points(points: list[tuple[float, float]]) -> list[tuple[float, float]]:
    deduped: list[tuple[float, float]] = []
    for pt in points:
        if not deduped or deduped[-1] != pt:
            deduped.append(pt)
    return deduped


def _polyline_path(points: list[tuple[float, float]]) -> mpath.Path:
    codes = [mpath.Path.MOVETO] + [mpath.Path.LINETO] * (len(points) - 1)
    return mpath.Path(points, codes)


def _draw_dependencies(
    ax: plt.Axes,
    positions: dict[str, tuple[float, float, float]],
    dependencies: Mapping[str, Sequence[str]],
) -> None:
    for task_id, deps in dependencies.items():
        target = positions.get(task_id)
        if target is None:
            continue
        for dep_id in deps:
            source = positions.get(dep_id)
            if source is None:
                continue
            points = _elbow_route(source, target)
            if len(points) < 2:
                continue
            arrow = FancyArrowPatch(
                path=_polyline_path(points),
                arrowstyle="-|>",
                mutation_scale=8.0,
                lw=0.9,
                color=ARROW_COLOR,
                shrinkA=0.5,
                shrinkB=0.5,
            )
            ax.add_patch(arrow)
