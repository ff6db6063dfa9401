from __future__ import annotations

from typing import List

from .task_models import CellKind, Schedule, ScheduledTask, TimelineRow


def to_timeline_rows(schedule: Schedule, horizon: int | None = None) -> list[TimelineRow]:
    """
    Convert a computed schedule into one timeline row per task.

    Each row has one cell per time unit in [0, horizon). Rows keep the
    schedule's task order.
    """

    span = schedule.horizon if horizon is None else horizon
    if span < 0:
        raise ValueError(f"horizon must be >= 0, got {span}")

    rows: List[TimelineRow] = []
    for task in schedule.tasks:
        rows.append(TimelineRow(task_id=task.task_id, cells=tuple(_cell(task, unit) for unit in range(span))))
    return rows


def _cell(task: ScheduledTask, unit: int) -> CellKind:
    if not task.is_active(unit):
        return "inactive"
    return "critical" if task.critical else "active"
