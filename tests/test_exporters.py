import csv
from pathlib import Path

import pytest

from cpm_scheduler.exporters import export_task_csv, export_timeline_csv
from cpm_scheduler.render_gantt import render_gantt
from cpm_scheduler.scheduling import schedule_tasks
from cpm_scheduler.task_models import Schedule, TimelineRow
from cpm_scheduler.timeline import to_timeline_rows


def test_export_task_csv(tmp_path: Path, example_records) -> None:
    path = tmp_path / "out" / "output.csv"
    schedule = schedule_tasks(example_records).schedule

    export_task_csv(path, schedule)

    assert path.read_text(encoding="utf-8").splitlines() == [
        "task,duration,ES,EF,LS,LF,slack",
        "a,2,0,2,0,2,0",
        "b,3,2,5,2,5,0",
        "c,2,2,4,3,5,1",
        "d,5,5,10,5,10,0",
    ]


def test_export_timeline_csv(tmp_path: Path, example_records) -> None:
    path = tmp_path / "timeline.csv"
    schedule = schedule_tasks(example_records).schedule

    export_timeline_csv(path, to_timeline_rows(schedule), schedule.horizon)

    with path.open(newline="", encoding="utf-8") as handle:
        rows = list(csv.reader(handle))

    assert rows[0] == ["Task"] + [str(unit) for unit in range(10)]
    assert rows[1] == ["a", "C", "C", "O", "O", "O", "O", "O", "O", "O", "O"]
    assert rows[3] == ["c", "O", "O", "X", "X", "O", "O", "O", "O", "O", "O"]
    assert rows[4] == ["d", "O", "O", "O", "O", "O", "C", "C", "C", "C", "C"]


def test_export_timeline_rejects_mismatched_row(tmp_path: Path) -> None:
    rows = [
        TimelineRow(task_id="a", cells=("critical", "inactive")),
        TimelineRow(task_id="b", cells=("critical",)),
    ]

    with pytest.raises(ValueError, match="'b'"):
        export_timeline_csv(tmp_path / "timeline.csv", rows, horizon=2)

    assert not (tmp_path / "timeline.csv").exists()


def test_renderer_produces_svg(tmp_path: Path, example_records) -> None:
    run = schedule_tasks(example_records)
    dependencies = {task.task_id: task.dependencies for task in run.registry}

    out_file = tmp_path / "chart.svg"
    render_gantt(run.schedule, out_path=str(out_file), title="Example", dependencies=dependencies)

    assert out_file.exists()
    assert out_file.stat().st_size > 0
    assert "<svg" in out_file.read_text(encoding="utf-8")


def test_renderer_rejects_empty_schedule(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        render_gantt(Schedule(), out_path=str(tmp_path / "chart.svg"), title="Empty")
