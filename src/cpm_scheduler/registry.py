from __future__ import annotations

import logging
from typing import Iterable, Iterator

from .errors import DuplicateTaskError, ProjectValidationError, TaskNotFoundError
from .task_models import Task, TaskRecord

logger = logging.getLogger(__name__)


class TaskRegistry:
    """
    Owns every task of a run and resolves identifiers to stable integer handles.

    Handles are assigned in registration order starting at 0, so they double as
    indexes into the per-pass result arrays.
    """

    def __init__(self) -> None:
        self._tasks: list[Task] = []
        self._handles: dict[str, int] = {}

    @classmethod
    def from_records(cls, records: Iterable[TaskRecord]) -> "TaskRegistry":
        registry = cls()
        for record in records:
            registry.register(record)
        logger.debug("Registered %d tasks", len(registry))
        return registry

    def register(self, record: TaskRecord) -> Task:
        if not isinstance(record.task_id, str) or not record.task_id.strip():
            raise ProjectValidationError("Task id must be a non-empty string")
        if isinstance(record.duration, bool) or not isinstance(record.duration, int) or record.duration < 0:
            raise ProjectValidationError(
                f"Task '{record.task_id}' has invalid duration {record.duration!r} (expected integer >= 0)"
            )
        if record.task_id in self._handles:
            raise DuplicateTaskError(record.task_id)

        task = Task(
            handle=len(self._tasks),
            task_id=record.task_id,
            duration=record.duration,
            dependencies=record.dependencies,
        )
        self._tasks.append(task)
        self._handles[task.task_id] = task.handle
        return task

    def lookup(self, task_id: str) -> Task:
        return self._tasks[self.handle(task_id)]

    def handle(self, task_id: str) -> int:
        try:
            return self._handles[task_id]
        except KeyError:
            raise TaskNotFoundError(task_id) from None

    def task_at(self, handle: int) -> Task:
        """Return the task registered under `handle`."""
        return self._tasks[handle]

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._handles

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)
