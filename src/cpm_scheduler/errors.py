from __future__ import annotations

from dataclasses import dataclass


class ProjectValidationError(Exception):
    """Raised when the task set is invalid (bad input, duplicates, unknown refs, cycles)."""


class SchedulingError(Exception):
    """Raised when the schedule cannot be computed from an otherwise valid task set."""


@dataclass(frozen=True)
class Cycle:
    """Represents a detected cycle path for error reporting."""

    path: list[str]

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        return " -> ".join(self.path)


class TaskNotFoundError(ProjectValidationError):
    """A task identifier does not resolve to a registered task."""

    def __init__(self, task_id: str, referenced_by: str | None = None) -> None:
        self.task_id = task_id
        self.referenced_by = referenced_by
        if referenced_by is None:
            message = f"Task not found: '{task_id}'"
        else:
            message = f"Task '{referenced_by}' depends on unknown task '{task_id}'"
        super().__init__(message)


class DuplicateTaskError(ProjectValidationError):
    """Two input records share an identifier."""

    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Duplicate task id '{task_id}'")


class CyclicDependencyError(ProjectValidationError):
    """A task transitively depends on itself."""

    def __init__(self, cycle: Cycle) -> None:
        self.cycle = cycle
        self.task_id = cycle.path[0] if cycle.path else None
        super().__init__(f"Dependency cycle detected: {cycle}")


class BackwardPassUnderdeterminedError(SchedulingError):
    """Late finish could not be resolved for a task that has successors."""

    def __init__(self, task_id: str, reason: str = "no successor resolved") -> None:
        self.task_id = task_id
        super().__init__(f"Cannot compute late finish for '{task_id}': {reason}")
