import io
from pathlib import Path

import pytest

from cpm_scheduler.parse_tasks import load_tasks, parse_csv_tasks, split_dependencies
from cpm_scheduler.scheduling import ProjectValidationError
from cpm_scheduler.task_models import TaskRecord


CSV_TEXT = "task,duration,dependencies\na,2,\nb,3,a\nc,2,a\nd,5,b;c\n"


def test_load_csv_tasks(tmp_path: Path, example_records) -> None:
    path = tmp_path / "tasks.csv"
    path.write_text(CSV_TEXT, encoding="utf-8")

    assert load_tasks(path) == example_records


def test_csv_allows_missing_dependency_column_and_blank_lines() -> None:
    text = "task,duration,dependencies\n\nstart,1\n end , 4 , start ; \n"

    records = parse_csv_tasks(io.StringIO(text))

    assert records == [
        TaskRecord(task_id="start", duration=1),
        TaskRecord(task_id="end", duration=4, dependencies=("start",)),
    ]


@pytest.mark.parametrize(
    "text, message",
    [
        ("", "empty file"),
        ("name,length\n", "expected header"),
        ("task,duration,dependencies\na,two,\n", "tasks.csv:2"),
        ("task,duration,dependencies\na,-1,\n", "must be >= 0"),
        ("task,duration,dependencies\n,1,\n", "must not be empty"),
        ("task,duration,dependencies\na\n", "expected at least"),
        ("task,duration,dependencies\na,1,,extra\n", "unexpected extra columns"),
    ],
)
def test_csv_errors(text: str, message: str) -> None:
    with pytest.raises(ProjectValidationError, match=message):
        parse_csv_tasks(io.StringIO(text))


def test_split_dependencies_ignores_empty_items() -> None:
    assert split_dependencies("b;;c;") == ["b", "c"]
    assert split_dependencies("") == []


def test_load_yaml_tasks(tmp_path: Path, example_records) -> None:
    path = tmp_path / "tasks.yaml"
    path.write_text(
        "\n".join(
            [
                "project:",
                "  name: Example",
                "tasks:",
                "  - id: a",
                "    duration: 2",
                "  - id: b",
                "    duration: 3",
                "    depends_on: [a]",
                "  - id: c",
                "    duration: 2",
                "    depends_on: [a]",
                "  - id: d",
                "    duration: 5",
                "    depends_on: [b, c]",
            ]
        ),
        encoding="utf-8",
    )

    assert load_tasks(path) == example_records


@pytest.mark.parametrize(
    "text, message",
    [
        ("- a\n", "expected mapping at top level"),
        ("project: {}\n", "missing required field 'tasks'"),
        ("tasks:\n  - id: a\n    duration: 1.5\n", r"tasks\[0\]\.duration"),
        ("tasks:\n  - id: a\n", "missing required field 'duration'"),
        ("tasks:\n  - id: a\n    duration: 1\n    owner: me\n", "unexpected fields"),
        ("tasks:\n  - id: a\n    duration: 1\n    depends_on: b\n", "expected list of task ids"),
    ],
)
def test_yaml_errors(tmp_path: Path, text: str, message: str) -> None:
    path = tmp_path / "bad.yml"
    path.write_text(text, encoding="utf-8")

    with pytest.raises(ProjectValidationError, match=message):
        load_tasks(path)


def test_load_csv_with_byte_order_mark(tmp_path: Path, example_records) -> None:
    path = tmp_path / "tasks.csv"
    path.write_text("\ufeff" + CSV_TEXT, encoding="utf-8")

    assert load_tasks(path) == example_records
