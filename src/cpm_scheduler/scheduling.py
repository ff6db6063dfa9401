from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from .errors import (
    BackwardPassUnderdeterminedError,
    Cycle,
    CyclicDependencyError,
    DuplicateTaskError,
    ProjectValidationError,
    SchedulingError,
    TaskNotFoundError,
)
from .graph import DependencyGraph
from .registry import TaskRegistry
from .task_models import Schedule, ScheduledTask, TaskRecord

__all__ = [
    "BackwardPass",
    "BackwardPassUnderdeterminedError",
    "Cycle",
    "CyclicDependencyError",
    "DuplicateTaskError",
    "ForwardPass",
    "ProjectValidationError",
    "ScheduleRun",
    "SchedulingError",
    "TaskNotFoundError",
    "backward_pass",
    "classify_slack",
    "critical_path",
    "critical_paths",
    "forward_pass",
    "schedule_tasks",
]

logger = logging.getLogger(__name__)

_VISITING = 1
_DONE = 2


@dataclass(frozen=True)
class ForwardPass:
    """Earliest start/finish per handle."""

    es: tuple[int, ...]
    ef: tuple[int, ...]

    @property
    def horizon(self) -> int:
        return max(self.ef, default=0)


@dataclass(frozen=True)
class BackwardPass:
    """Latest start/finish per handle."""

    ls: tuple[int, ...]
    lf: tuple[int, ...]


@dataclass(frozen=True)
class ScheduleRun:
    """Every stage output of one scheduling run."""

    registry: TaskRegistry
    graph: DependencyGraph
    forward: ForwardPass
    backward: BackwardPass
    schedule: Schedule


def schedule_tasks(records: Iterable[TaskRecord]) -> ScheduleRun:
    """
    Run the full CPM pipeline over the given records.

    - Registers tasks (duplicate ids raise DuplicateTaskError).
    - Derives successors (unknown references raise TaskNotFoundError).
    - Forward pass, backward pass, then slack classification.

    Either every stage completes for every task or an exception propagates and
    no schedule is produced.
    """

    registry = TaskRegistry.from_records(records)
    graph = DependencyGraph.build(registry)
    forward = forward_pass(graph)
    backward = backward_pass(graph, forward)
    schedule = classify_slack(graph, forward, backward)
    logger.debug(
        "Scheduled %d tasks, horizon %d, %d critical",
        len(schedule.tasks),
        schedule.horizon,
        len(schedule.critical_tasks),
    )
    return ScheduleRun(registry=registry, graph=graph, forward=forward, backward=backward, schedule=schedule)


def forward_pass(graph: DependencyGraph) -> ForwardPass:
    """ES = max(EF of dependencies), 0 without dependencies; EF = ES + duration."""

    def early_start(handle: int, es: list[int | None]) -> int:
        start = 0
        for dep in graph.dependencies(handle):
            start = max(start, es[dep] + graph.duration(dep))
        return start

    es = _memoized_pass(graph, graph.dependencies, early_start)
    ef = tuple(start + graph.duration(handle) for handle, start in enumerate(es))
    logger.debug("Forward pass complete, horizon %d", max(ef, default=0))
    return ForwardPass(es=es, ef=ef)


def backward_pass(graph: DependencyGraph, forward: ForwardPass) -> BackwardPass:
    """LF = min(LS of successors), EF without successors; LS = LF - duration."""

    if len(forward.ef) != len(graph):
        raise BackwardPassUnderdeterminedError(
            "<project>", f"forward pass covers {len(forward.ef)} of {len(graph)} tasks"
        )

    def late_finish(handle: int, lf: list[int | None]) -> int:
        successors = graph.successors(handle)
        if not successors:
            return forward.ef[handle]
        finish: float = math.inf
        for succ in successors:
            value = lf[succ]
            finish = min(finish, value - graph.duration(succ))
        if finish == math.inf:
            raise BackwardPassUnderdeterminedError(graph.task_id(handle))
        return int(finish)

    lf = _memoized_pass(graph, graph.successors, late_finish, reverse_cycle=True)
    ls = tuple(finish - graph.duration(handle) for handle, finish in enumerate(lf))
    logger.debug("Backward pass complete")
    return BackwardPass(ls=ls, lf=lf)


def classify_slack(graph: DependencyGraph, forward: ForwardPass, backward: BackwardPass) -> Schedule:
    """Slack = LS - ES; zero slack marks a critical task."""

    tasks = []
    for task in graph.registry:
        handle = task.handle
        tasks.append(
            ScheduledTask(
                task_id=task.task_id,
                duration=task.duration,
                es=forward.es[handle],
                ef=forward.ef[handle],
                ls=backward.ls[handle],
                lf=backward.lf[handle],
                slack=backward.ls[handle] - forward.es[handle],
            )
        )
    return Schedule(tasks=tuple(tasks), horizon=forward.horizon)


def critical_path(schedule: Schedule, graph: DependencyGraph) -> list[str]:
    """
    Return one critical chain from a dependency-free task to a successor-free one.

    Walks backwards from a successor-free task finishing at the horizon, always
    stepping to a critical dependency that finishes exactly when the current task
    starts, so the chain spans the whole horizon. Linear in tasks plus edges.
    """

    scheduled = [schedule.get(task.task_id) for task in graph.registry]
    ends = [h for h in graph.sinks() if scheduled[h].ef == schedule.horizon]
    if not ends:
        return []

    path = [ends[0]]
    while graph.dependencies(path[-1]):
        start = scheduled[path[-1]].es
        previous = next(
            (dep for dep in graph.dependencies(path[-1]) if scheduled[dep].critical and scheduled[dep].ef == start),
            None,
        )
        if previous is None:
            raise SchedulingError(f"No critical dependency finishes when '{graph.task_id(path[-1])}' starts")
        path.append(previous)

    path.reverse()
    return [graph.task_id(h) for h in path]


def critical_paths(schedule: Schedule, graph: DependencyGraph, limit: int | None = None) -> list[list[str]]:
    """
    Enumerate chains of critical tasks from a dependency-free task to a successor-free one.

    Consecutive tasks are linked only when the predecessor finishes exactly as the
    successor starts. Chains spanning the whole horizon are listed first. The number of
    chains can grow exponentially with the graph, so `limit` stops the search once
    that many chains are found. Use `critical_path` when one chain is enough.
    """

    scheduled = [schedule.get(task.task_id) for task in graph.registry]

    def critical_next(handle: int) -> list[int]:
        finish = scheduled[handle].ef
        return [
            succ
            for succ in graph.successors(handle)
            if scheduled[succ].critical and scheduled[succ].es == finish
        ]

    paths: list[list[int]] = []
    stack: list[list[int]] = [[h] for h in reversed(graph.sources()) if scheduled[h].critical]
    while stack and (limit is None or len(paths) < limit):
        path = stack.pop()
        following = critical_next(path[-1])
        if not following:
            if not graph.successors(path[-1]):
                paths.append(path)
            continue
        for succ in reversed(following):
            stack.append(path + [succ])

    def spans_horizon(path: Sequence[int]) -> bool:
        return sum(scheduled[h].duration for h in path) == schedule.horizon

    paths.sort(key=lambda p: not spans_horizon(p))
    return [[graph.task_id(h) for h in path] for path in paths]


def _memoized_pass(
    graph: DependencyGraph,
    neighbours: Callable[[int], tuple[int, ...]],
    compute: Callable[[int, list[int | None]], int],
    reverse_cycle: bool = False,
) -> tuple[int, ...]:
    """
    Evaluate `compute` once per handle, after all of its `neighbours`.

    Uses an explicit stack instead of recursion. A neighbour found in the
    "visiting" state closes a cycle, reported as CyclicDependencyError.
    """

    count = len(graph)
    values: list[int | None] = [None] * count
    state = [0] * count

    for root in range(count):
        if state[root] == _DONE:
            continue
        state[root] = _VISITING
        stack = [(root, iter(neighbours(root)))]
        while stack:
            handle, pending = stack[-1]
            for nxt in pending:
                if state[nxt] == _DONE:
                    continue
                if state[nxt] == _VISITING:
                    raise CyclicDependencyError(_cycle_from_stack(graph, stack, nxt, reverse_cycle))
                state[nxt] = _VISITING
                stack.append((nxt, iter(neighbours(nxt))))
                break
            else:
                stack.pop()
                values[handle] = compute(handle, values)
                state[handle] = _DONE

    return tuple(values)  # type: ignore[arg-type]


def _cycle_from_stack(
    graph: DependencyGraph, stack: list[tuple[int, object]], closing: int, reverse: bool
) -> Cycle:
    handles = [handle for handle, _ in stack]
    path = handles[handles.index(closing) :] + [closing]
    if reverse:
        path.reverse()
    return Cycle([graph.task_id(h) for h in path])
