from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .errors import ProjectValidationError
from .task_models import TaskRecord

logger = logging.getLogger(__name__)

CSV_HEADER = ["task", "duration", "dependencies"]
DEPENDENCY_SEPARATOR = ";"


@dataclass(frozen=True)
class _Path:
    """Helper to produce readable location strings like tasks[0].duration or tasks.csv:3."""

    parts: tuple[str, ...] = ()

    def child(self, segment: str) -> "_Path":
        return _Path(self.parts + (segment,))

    def __str__(self) -> str:  # pragma: no cover - trivial
        return ".".join(self.parts) if self.parts else "root"


def load_tasks(path: str | Path) -> list[TaskRecord]:
    """Load task records from a CSV or YAML file, chosen by extension (no scheduling)."""

    task_path = Path(path)
    suffix = task_path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        with task_path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
        records = parse_yaml_tasks(raw)
    else:
        with task_path.open("r", newline="", encoding="utf-8-sig") as fh:
            records = parse_csv_tasks(fh, source=task_path.name)

    logger.debug("Loaded %d task records from %s", len(records), task_path)
    for record in records:
        logger.debug("Task: %s, duration: %d, dependencies: %s", record.task_id, record.duration, list(record.dependencies))
    return records


def parse_csv_tasks(lines: Any, source: str = "tasks.csv") -> list[TaskRecord]:
    """
    Parse `task,duration,dependencies` rows; dependencies are `;` separated.

    The first row must be the header. Blank rows are skipped.
    """

    reader = csv.reader(lines)
    header = next(reader, None)
    if header is None:
        raise ProjectValidationError(f"{source}: empty file, expected header {','.join(CSV_HEADER)}")
    normalized = [cell.strip().lower() for cell in header]
    if normalized not in (CSV_HEADER[:2], CSV_HEADER):
        raise ProjectValidationError(f"{source}:1: expected header {','.join(CSV_HEADER)}")

    records: list[TaskRecord] = []
    for line_no, row in enumerate(reader, start=2):
        cells = [cell.strip() for cell in row]
        if not any(cells):
            continue
        location = f"{source}:{line_no}"
        if len(cells) < 2:
            raise ProjectValidationError(f"{location}: expected at least task and duration columns")
        if len(cells) > len(CSV_HEADER):
            raise ProjectValidationError(f"{location}: unexpected extra columns {cells[len(CSV_HEADER):]}")

        task_id = cells[0]
        if not task_id:
            raise ProjectValidationError(f"{location}: task id must not be empty")
        duration = _parse_duration(cells[1], location)
        dependencies = split_dependencies(cells[2]) if len(cells) == 3 else []
        records.append(TaskRecord(task_id=task_id, duration=duration, dependencies=tuple(dependencies)))
    return records


def parse_yaml_tasks(data: Any) -> list[TaskRecord]:
    path = _Path()
    if not isinstance(data, dict):
        raise ProjectValidationError(f"{path}: expected mapping at top level")
    _assert_allowed_keys(data, {"project", "tasks"}, path)

    tasks_raw = data.get("tasks")
    if tasks_raw is None:
        raise ProjectValidationError(f"{path}: missing required field 'tasks'")
    if not isinstance(tasks_raw, list):
        raise ProjectValidationError(f"{path.child('tasks')}: expected list")

    return [_parse_task(task_raw, path.child(f"tasks[{idx}]")) for idx, task_raw in enumerate(tasks_raw)]


def split_dependencies(value: str, separator: str = DEPENDENCY_SEPARATOR) -> list[str]:
    """Split a delimited dependency list, ignoring empty entries."""
    return [item.strip() for item in value.split(separator) if item.strip()]


def _parse_task(data: Any, path: _Path) -> TaskRecord:
    if not isinstance(data, dict):
        raise ProjectValidationError(f"{path}: expected mapping for task")
    _assert_allowed_keys(data, {"id", "duration", "depends_on"}, path)

    task_id = _require_str(data, "id", path)
    duration = data.get("duration")
    if "duration" not in data:
        raise ProjectValidationError(f"{path}: missing required field 'duration'")
    if isinstance(duration, bool) or not isinstance(duration, int) or duration < 0:
        raise ProjectValidationError(f"{path.child('duration')}: expected integer >= 0")

    depends_on_raw = data.get("depends_on", [])
    if depends_on_raw is None:
        depends_on_raw = []
    if not isinstance(depends_on_raw, list):
        raise ProjectValidationError(f"{path.child('depends_on')}: expected list of task ids")
    depends_on: list[str] = []
    for idx, dep in enumerate(depends_on_raw):
        if not isinstance(dep, str) or not dep.strip():
            raise ProjectValidationError(f"{path.child(f'depends_on[{idx}]')}: expected non-empty string task id")
        depends_on.append(dep.strip())

    return TaskRecord(task_id=task_id, duration=duration, dependencies=tuple(depends_on))


def _parse_duration(value: str, location: str) -> int:
    try:
        duration = int(value)
    except ValueError as exc:
        raise ProjectValidationError(f"{location}: duration '{value}' is not an integer") from exc
    if duration < 0:
        raise ProjectValidationError(f"{location}: duration must be >= 0, got {duration}")
    return duration


def _assert_allowed_keys(data: dict[str, Any], allowed: set[str], path: _Path) -> None:
    extras = sorted(set(data.keys()) - allowed)
    if extras:
        raise ProjectValidationError(f"{path}: unexpected fields {extras}")


def _require_str(data: dict[str, Any], key: str, path: _Path) -> str:
    if key not in data:
        raise ProjectValidationError(f"{path}: missing required field '{key}'")
    value = data[key]
    if not isinstance(value, str) or not value.strip():
        raise ProjectValidationError(f"{path.child(key)}: expected non-empty string")
    return value.strip()
