import pytest

from cpm_scheduler.task_models import TaskRecord


@pytest.fixture
def example_records():
    """Four-task diamond: a -> (b, c) -> d."""
    return [
        TaskRecord(task_id="a", duration=2),
        TaskRecord(task_id="b", duration=3, dependencies=("a",)),
        TaskRecord(task_id="c", duration=2, dependencies=("a",)),
        TaskRecord(task_id="d", duration=5, dependencies=("b", "c")),
    ]
