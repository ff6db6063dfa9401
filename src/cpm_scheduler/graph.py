from __future__ import annotations

import logging

from .errors import TaskNotFoundError
from .registry import TaskRegistry

logger = logging.getLogger(__name__)


class DependencyGraph:
    """
    Dependency and successor relations over registry handles.

    The successor relation is derived once, in `build`, as the exact inverse of
    the declared dependencies. Both relations are exposed as tuples and never
    change afterwards.
    """

    def __init__(
        self,
        registry: TaskRegistry,
        dependencies: tuple[tuple[int, ...], ...],
        successors: tuple[tuple[int, ...], ...],
    ) -> None:
        self.registry = registry
        self._dependencies = dependencies
        self._successors = successors

    @classmethod
    def build(cls, registry: TaskRegistry) -> "DependencyGraph":
        """
        Resolve declared dependencies and derive successors.

        Every reference is validated before any successor list is assembled, so
        an unknown identifier raises TaskNotFoundError without leaving a
        half-built graph behind.
        """

        dependencies: list[tuple[int, ...]] = []
        for task in registry:
            resolved: list[int] = []
            for dep_id in task.dependencies:
                if dep_id not in registry:
                    raise TaskNotFoundError(dep_id, referenced_by=task.task_id)
                resolved.append(registry.handle(dep_id))
            dependencies.append(tuple(resolved))

        successors: list[list[int]] = [[] for _ in dependencies]
        for handle, deps in enumerate(dependencies):
            for dep_handle in deps:
                successors[dep_handle].append(handle)

        edges = sum(len(deps) for deps in dependencies)
        logger.debug("Built dependency graph: %d tasks, %d edges", len(dependencies), edges)
        return cls(registry, tuple(dependencies), tuple(tuple(s) for s in successors))

    def dependencies(self, handle: int) -> tuple[int, ...]:
        return self._dependencies[handle]

    def successors(self, handle: int) -> tuple[int, ...]:
        return self._successors[handle]

    def sources(self) -> list[int]:
        """Handles of tasks without dependencies."""
        return [handle for handle, deps in enumerate(self._dependencies) if not deps]

    def sinks(self) -> list[int]:
        """Handles of tasks without successors."""
        return [handle for handle, succs in enumerate(self._successors) if not succs]

    def task_id(self, handle: int) -> str:
        return self.registry.task_at(handle).task_id

    def duration(self, handle: int) -> int:
        return self.registry.task_at(handle).duration

    def __len__(self) -> int:
        return len(self._dependencies)
