from __future__ import annotations

import argparse
import logging
import sys
import webbrowser
from pathlib import Path

import yaml

from .exporters import export_task_csv, export_timeline_csv
from .parse_tasks import load_tasks
from .render_gantt import render_gantt
from .scheduling import ProjectValidationError, SchedulingError, critical_path, schedule_tasks
from .task_models import TaskRecord
from .timeline import to_timeline_rows


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cpm-scheduler",
        description="Critical Path Method scheduler",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("tasks", nargs="?", default="tasks.csv", help="Path to the task CSV or YAML file")
    parser.add_argument("--output", default="output.csv", help="Task details CSV path")
    parser.add_argument("--timeline", default="timeline.csv", help="Timeline CSV path")
    parser.add_argument("--svg", help="Optional SVG chart path")
    parser.add_argument("--title", help="Chart title; defaults to the YAML project name or the input file stem")
    parser.add_argument(
        "--view",
        dest="view",
        action="store_true",
        default=False,
        help="Best-effort open the SVG chart after rendering",
    )
    parser.add_argument(
        "--no-view",
        dest="view",
        action="store_false",
        help="Do not open the SVG chart after rendering",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _extract_project_name(path: Path) -> str | None:
    if path.suffix.lower() not in (".yaml", ".yml"):
        return None
    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError):
        return None
    if isinstance(raw, dict):
        project = raw.get("project")
        if isinstance(project, dict):
            name = project.get("name")
            if isinstance(name, str):
                return name
    return None


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    tasks_path = Path(args.tasks)

    try:
        records: list[TaskRecord] = load_tasks(tasks_path)
    except (yaml.YAMLError, ProjectValidationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except FileNotFoundError:
        print(f"Error: task file not found: {tasks_path}", file=sys.stderr)
        return 1
    except Exception as exc:  # Unexpected
        print(f"Unexpected error while loading tasks: {exc}", file=sys.stderr)
        return 1

    try:
        run = schedule_tasks(records)
    except (ProjectValidationError, SchedulingError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except Exception as exc:
        print(f"Unexpected error while scheduling: {exc}", file=sys.stderr)
        return 1

    schedule = run.schedule
    rows = to_timeline_rows(schedule)

    try:
        export_task_csv(args.output, schedule)
        print(f"Task details written to {args.output}")
        export_timeline_csv(args.timeline, rows, schedule.horizon)
        print(f"Timeline written to {args.timeline}")
    except OSError as exc:
        print(f"Error: failed to write results: {exc}", file=sys.stderr)
        return 1

    path = critical_path(schedule, run.graph)
    if path:
        print(f"Critical path: {' -> '.join(path)} (horizon {schedule.horizon})")

    if args.svg:
        title = args.title or _extract_project_name(tasks_path) or tasks_path.stem
        dependencies = {task.task_id: task.dependencies for task in run.registry}
        try:
            render_gantt(schedule, out_path=args.svg, title=title, dependencies=dependencies)
        except Exception as exc:
            print(f"Unexpected error while rendering: {exc}", file=sys.stderr)
            return 1
        print(f"Chart written to {args.svg}")

        if args.view:
            try:
                webbrowser.open(Path(args.svg).resolve().as_uri())
            except webbrowser.Error:
                pass

    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
