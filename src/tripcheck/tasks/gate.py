"""Completion gate: the Incomplete/Complete state machine for tasks."""

from dataclasses import replace
from datetime import datetime
from enum import Enum, auto

from tripcheck.tasks import rejections
from tripcheck.tasks.graph import DependencyGraph
from tripcheck.tasks.models import Task, TaskCollection
from tripcheck.tasks.rejections import Rejection


class CompletionState(Enum):
    INCOMPLETE = auto()
    COMPLETE = auto()


# Completing is guarded by check_completion; un-completing never is.
_TRANSITIONS: dict[CompletionState, set[CompletionState]] = {
    CompletionState.INCOMPLETE: {CompletionState.COMPLETE},
    CompletionState.COMPLETE: {CompletionState.INCOMPLETE},
}


def state_of(task: Task) -> CompletionState:
    return CompletionState.COMPLETE if task.completed else CompletionState.INCOMPLETE


def valid_transition(current: CompletionState, target: CompletionState) -> bool:
    """Check if transitioning from current to target is allowed."""
    return target in _TRANSITIONS.get(current, set())


def open_prerequisites(collection: TaskCollection, task_id: str) -> list[str]:
    """Return transitive prerequisites of task_id that are not completed.

    A prerequisite id missing from the collection counts as open.
    """
    graph = DependencyGraph(collection)
    open_ids: list[str] = []
    for dep in graph.prerequisites(task_id):
        task = graph.get(dep)
        if task is None or not task.completed:
            open_ids.append(dep)
    return open_ids


def is_blocked(collection: TaskCollection, task_id: str) -> bool:
    """Return True if the task is incomplete and waiting on a prerequisite."""
    task = collection.get(task_id)
    if task is None or task.completed:
        return False
    return bool(open_prerequisites(collection, task_id))


def check_completion(collection: TaskCollection, task_id: str) -> Rejection | None:
    """Return None if the task may be toggled, else the refusal."""
    task = collection.get(task_id)
    if task is None:
        return rejections.task_not_found(task_id)
    if task.completed:
        return None

    open_ids = open_prerequisites(collection, task_id)
    if open_ids:
        return rejections.dependencies_incomplete(task_id, open_ids)
    return None


def toggled(task: Task, now: datetime) -> Task:
    """Return the task moved to its other state.

    Callers must run check_completion first; this only applies the move.
    """
    current = state_of(task)
    target = (
        CompletionState.INCOMPLETE
        if current == CompletionState.COMPLETE
        else CompletionState.COMPLETE
    )
    if not valid_transition(current, target):
        raise ValueError(f"Cannot transition from {current.name} to {target.name}")

    if target == CompletionState.COMPLETE:
        return replace(task, completed=True, completed_at=now.isoformat())
    return replace(task, completed=False, completed_at=None)
