"""Export helpers for the task table and the timeline CSV."""
from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable

from .task_models import CellKind, Schedule, TimelineRow

TASK_HEADERS = ["task", "duration", "ES", "EF", "LS", "LF", "slack"]
TIMELINE_LABEL = "Task"
CELL_MARKERS: dict[CellKind, str] = {
    "critical": "C",
    "active": "X",
    "inactive": "O",
}


def export_task_csv(path: Path | str, schedule: Schedule) -> None:
    """Write one row per task with its CPM attributes."""
    csv_path = Path(path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)

    with csv_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle, lineterminator="\n")
        writer.writerow(TASK_HEADERS)
        for task in schedule.tasks:
            writer.writerow([task.task_id, task.duration, task.es, task.ef, task.ls, task.lf, task.slack])


def export_timeline_csv(path: Path | str, rows: Iterable[TimelineRow], horizon: int) -> None:
    """Write the timeline grid: C = critical and active, X = active, O = inactive."""
    grid = list(rows)
    for row in grid:
        if len(row.cells) != horizon:
            raise ValueError(f"Timeline row '{row.task_id}' has {len(row.cells)} cells, expected {horizon}")

    csv_path = Path(path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)

    header = [TIMELINE_LABEL] + [str(unit) for unit in range(horizon)]
    with csv_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle, lineterminator="\n")
        writer.writerow(header)
        for row in grid:
            writer.writerow([row.task_id] + [CELL_MARKERS[cell] for cell in row.cells])
