"""Task record and task collection models."""

import json
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class TaskValidationError(ValueError):
    """Raised when a task record would violate its own invariants."""


class DuplicateTaskIdError(RuntimeError):
    """Raised when two tasks in one collection share an id.

    Never caused by user input: it means the id generator is broken.
    """


class TaskCategory(StrEnum):
    preparation = "preparation"
    packing = "packing"
    booking = "booking"
    activity = "activity"
    transportation = "transportation"
    accommodation = "accommodation"
    other = "other"


class TaskPriority(StrEnum):
    high = "high"
    medium = "medium"
    low = "low"


@dataclass(frozen=True)
class Task:
    """A checklist item belonging to a trip.

    ``dependencies`` holds the ids of prerequisite tasks. It behaves as a
    set (duplicates are dropped) but keeps insertion order for display.
    ``completed_at`` is set exactly when ``completed`` is true.
    """

    id: str
    text: str
    date: str | None = None
    time: str | None = None
    category: TaskCategory = TaskCategory.preparation
    priority: TaskPriority = TaskPriority.medium
    completed: bool = False
    completed_at: str | None = None
    created_at: str = field(default_factory=_now_iso)
    dependencies: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.text, str) or not self.text.strip():
            raise TaskValidationError("Task text must not be empty")
        if self.date is not None:
            try:
                datetime.strptime(self.date, "%Y-%m-%d")
            except (TypeError, ValueError) as exc:
                raise TaskValidationError(
                    f"Invalid task date '{self.date}' (expected YYYY-MM-DD)"
                ) from exc
        if self.time is not None and not (
            isinstance(self.time, str) and _TIME_RE.match(self.time)
        ):
            raise TaskValidationError(
                f"Invalid task time '{self.time}' (expected HH:MM)"
            )
        try:
            category = TaskCategory(self.category)
            priority = TaskPriority(self.priority)
        except ValueError as exc:
            raise TaskValidationError(str(exc)) from exc
        if self.completed != (self.completed_at is not None):
            raise TaskValidationError(
                "completed_at must be set exactly when the task is completed"
            )
        dependencies = tuple(dict.fromkeys(self.dependencies))
        if self.id in dependencies:
            raise TaskValidationError(f"Task '{self.id}' cannot depend on itself")

        # Normalised values on a frozen instance
        object.__setattr__(self, "category", category)
        object.__setattr__(self, "priority", priority)
        object.__setattr__(self, "dependencies", dependencies)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "date": self.date,
            "time": self.time,
            "category": str(self.category),
            "priority": str(self.priority),
            "completed": self.completed,
            "completedAt": self.completed_at,
            "createdAt": self.created_at,
            "dependencies": list(self.dependencies),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Build a task from its stored form.

        Accepts records written by older versions: numeric ids, no
        ``dependencies`` key, and categories or priorities that are no
        longer offered.
        """
        category = data.get("category", TaskCategory.preparation)
        if category not in TaskCategory.__members__:
            category = TaskCategory.preparation
        priority = data.get("priority", TaskPriority.medium)
        if priority not in TaskPriority.__members__:
            priority = TaskPriority.medium
        return cls(
            id=str(data["id"]),
            text=data["text"],
            date=data.get("date") or None,
            time=data.get("time") or None,
            category=TaskCategory(category),
            priority=TaskPriority(priority),
            completed=bool(data.get("completed", False)),
            completed_at=data.get("completedAt"),
            created_at=data.get("createdAt") or _now_iso(),
            dependencies=tuple(str(d) for d in data.get("dependencies") or []),
        )


@dataclass(frozen=True)
class TaskCollection:
    """The ordered tasks of one trip.

    Collections are never edited in place: every change returns a new
    collection, which is what gets handed to storage.
    """

    tasks: tuple[Task, ...] = ()
    _task_by_id: dict[str, Task] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        tasks = tuple(self.tasks)
        index: dict[str, Task] = {}
        for task in tasks:
            if task.id in index:
                raise DuplicateTaskIdError(f"Duplicate task ID: {task.id}")
            index[task.id] = task
        object.__setattr__(self, "tasks", tasks)
        object.__setattr__(self, "_task_by_id", index)

    def __iter__(self) -> Iterator[Task]:
        return iter(self.tasks)

    def __len__(self) -> int:
        return len(self.tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._task_by_id

    def get(self, task_id: str) -> Task | None:
        return self._task_by_id.get(task_id)

    def ids(self) -> list[str]:
        return [task.id for task in self.tasks]

    def index_of(self, task_id: str) -> int:
        """Return the position of a task, or -1 if it is not present."""
        for i, task in enumerate(self.tasks):
            if task.id == task_id:
                return i
        return -1

    def append(self, task: Task) -> "TaskCollection":
        return TaskCollection(tasks=(*self.tasks, task))

    def replace(self, task: Task) -> "TaskCollection":
        """Return a collection with the task of the same id swapped in."""
        if task.id not in self._task_by_id:
            raise KeyError(task.id)
        return TaskCollection(
            tasks=tuple(task if t.id == task.id else t for t in self.tasks)
        )

    def remove(self, task_id: str) -> "TaskCollection":
        return TaskCollection(tasks=tuple(t for t in self.tasks if t.id != task_id))

    def validate(self) -> list[str]:
        """Return a list of integrity errors (empty if valid).

        Used on collections read back from storage, which may have been
        written by code that did not enforce the dependency rules.
        """
        from tripcheck.tasks.graph import DependencyGraph

        errors: list[str] = []
        for task in self.tasks:
            for dep in task.dependencies:
                if dep not in self._task_by_id:
                    errors.append(f"Task '{task.id}' depends on unknown task '{dep}'")

        cycle = DependencyGraph(self).find_cycle()
        if cycle:
            errors.append(f"Dependency cycle detected: {' -> '.join(cycle)}")

        return errors

    def to_dict(self) -> dict[str, Any]:
        return {"tasks": [task.to_dict() for task in self.tasks]}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | list[dict[str, Any]]) -> "TaskCollection":
        # Browser storage kept a bare array of tasks per trip
        records = data if isinstance(data, list) else data.get("tasks", [])
        return cls(tasks=tuple(Task.from_dict(r) for r in records))

    @classmethod
    def from_json(cls, json_str: str) -> "TaskCollection":
        return cls.from_dict(json.loads(json_str))
