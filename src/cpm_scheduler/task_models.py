from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from .errors import TaskNotFoundError


CellKind = Literal["inactive", "critical", "active"]
"""Timeline cell classes: outside [ES, EF), critical-active, non-critical-active."""


@dataclass(frozen=True)
class TaskRecord:
    """Finalized input tuple handed over by a loader."""

    task_id: str
    duration: int
    dependencies: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Keep declaration order, drop repeated references.
        object.__setattr__(self, "dependencies", tuple(dict.fromkeys(self.dependencies)))


@dataclass(frozen=True)
class Task:
    """Registered task with its stable integer handle."""

    handle: int
    task_id: str
    duration: int
    dependencies: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScheduledTask:
    """Per-task CPM result."""

    task_id: str
    duration: int
    es: int
    ef: int
    ls: int
    lf: int
    slack: int

    @property
    def critical(self) -> bool:
        """True when the task has no slack."""
        return self.slack == 0

    def is_active(self, unit: int) -> bool:
        """Whether the task runs during time unit `unit` ([ES, EF))."""
        return self.es <= unit < self.ef


@dataclass(frozen=True)
class Schedule:
    """Complete, read-only CPM schedule in registration order."""

    tasks: tuple[ScheduledTask, ...] = ()
    horizon: int = 0
    _by_id: dict[str, ScheduledTask] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._by_id.update({task.task_id: task for task in self.tasks})

    def get(self, task_id: str) -> ScheduledTask:
        """Return the scheduled task for `task_id` or raise TaskNotFoundError."""
        try:
            return self._by_id[task_id]
        except KeyError:
            raise TaskNotFoundError(task_id) from None

    @property
    def critical_tasks(self) -> list[ScheduledTask]:
        return [task for task in self.tasks if task.critical]


@dataclass(frozen=True)
class TimelineRow:
    """One task's timeline, one cell per time unit of the horizon."""

    task_id: str
    cells: tuple[CellKind, ...] = ()
