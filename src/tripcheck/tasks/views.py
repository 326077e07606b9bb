"""Read-only views over a task collection for display."""

from datetime import datetime, timedelta
from enum import StrEnum

from tripcheck.tasks.gate import is_blocked
from tripcheck.tasks.models import Task, TaskCollection

DEFAULT_UPCOMING_WINDOW = timedelta(hours=24)


class TaskStatus(StrEnum):
    completed = "completed"
    blocked = "blocked"
    ready = "ready"


def task_status(collection: TaskCollection, task_id: str) -> TaskStatus:
    """Return the display status of a task. Blocked is derived, never stored."""
    task = collection.get(task_id)
    if task is None:
        raise KeyError(task_id)
    if task.completed:
        return TaskStatus.completed
    if is_blocked(collection, task_id):
        return TaskStatus.blocked
    return TaskStatus.ready


def filter_tasks(collection: TaskCollection, show_completed: bool = True) -> list[Task]:
    return [task for task in collection if show_completed or not task.completed]


def group_by_date(tasks: list[Task]) -> list[tuple[str | None, list[Task]]]:
    """Group tasks by due date, earliest first, undated tasks last."""
    grouped: dict[str, list[Task]] = {}
    undated: list[Task] = []
    for task in tasks:
        if task.date:
            grouped.setdefault(task.date, []).append(task)
        else:
            undated.append(task)

    # ISO dates sort chronologically as strings
    groups: list[tuple[str | None, list[Task]]] = [
        (day, grouped[day]) for day in sorted(grouped)
    ]
    if undated:
        groups.append((None, undated))
    return groups


def due_at(task: Task) -> datetime | None:
    """Return the naive local due time of a task (midnight if no time is set)."""
    if not task.date:
        return None
    if task.time:
        return datetime.strptime(f"{task.date} {task.time}", "%Y-%m-%d %H:%M")
    return datetime.strptime(task.date, "%Y-%m-%d")


def upcoming(
    collection: TaskCollection,
    now: datetime,
    window: timedelta = DEFAULT_UPCOMING_WINDOW,
) -> list[Task]:
    """Return incomplete tasks due in (now, now + window], soonest first.

    now must be naive local time, like the task dates.
    """
    horizon = now + window
    due: list[tuple[datetime, Task]] = []
    for task in collection:
        if task.completed:
            continue
        when = due_at(task)
        if when is not None and now < when <= horizon:
            due.append((when, task))
    due.sort(key=lambda pair: pair[0])
    return [task for _, task in due]
