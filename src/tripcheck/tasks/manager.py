"""TaskCollectionManager: the only component that produces new collections.

Every operation takes the current collection and returns either a new
collection or a Rejection. Nothing is stored here; the caller saves the
result. Always pass the latest saved collection: running an operation
against a stale copy and saving it would silently bring back tasks or
dependency edges that were removed in the meantime (TaskStore.save
guards against this with a revision check).
"""

import uuid
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from tripcheck.tasks import gate, rejections
from tripcheck.tasks.graph import check_add_dependency, check_delete
from tripcheck.tasks.models import (
    DuplicateTaskIdError,
    Task,
    TaskCategory,
    TaskCollection,
    TaskPriority,
    TaskValidationError,
)
from tripcheck.tasks.rejections import Rejection

Outcome = TaskCollection | Rejection

EDITABLE_FIELDS = frozenset({"text", "date", "time", "category", "priority"})
_COMPLETION_FIELDS = frozenset({"completed", "completed_at", "completedAt"})


def _default_clock() -> datetime:
    return datetime.now(UTC)


def _default_id() -> str:
    return uuid.uuid4().hex[:12]


class TaskCollectionManager:
    """Applies add/edit/toggle/link/delete operations to task collections."""

    def __init__(
        self,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._clock = clock or _default_clock
        self._id_factory = id_factory or _default_id

    def add(
        self,
        collection: TaskCollection,
        text: str,
        *,
        date: str | None = None,
        time: str | None = None,
        category: TaskCategory | str = TaskCategory.preparation,
        priority: TaskPriority | str = TaskPriority.medium,
    ) -> Outcome:
        """Append a new incomplete task with no dependencies."""
        try:
            task = Task(
                id=self._id_factory(),
                text=text,
                date=date,
                time=time,
                category=category,  # type: ignore[arg-type]
                priority=priority,  # type: ignore[arg-type]
                created_at=self._clock().isoformat(),
            )
        except TaskValidationError as exc:
            return rejections.validation_error(str(exc))

        if task.id in collection:
            raise DuplicateTaskIdError(f"Generated task ID already in use: {task.id}")
        return collection.append(task)

    def edit(
        self, collection: TaskCollection, task_id: str, patch: Mapping[str, Any]
    ) -> Outcome:
        """Change descriptive fields of an incomplete task."""
        task = collection.get(task_id)
        if task is None:
            return rejections.task_not_found(task_id)

        completion_keys = _COMPLETION_FIELDS & patch.keys()
        if completion_keys:
            return rejections.validation_error(
                "Completion can only be changed by toggling the task", task_id
            )
        unknown = sorted(set(patch) - EDITABLE_FIELDS)
        if unknown:
            return rejections.validation_error(
                f"Fields cannot be edited: {', '.join(unknown)}", task_id
            )
        if task.completed:
            return rejections.validation_error(
                f"Task '{task_id}' is completed; mark it incomplete to edit it",
                task_id,
            )

        try:
            updated = replace(task, **dict(patch))
        except TaskValidationError as exc:
            return rejections.validation_error(str(exc), task_id)
        return collection.replace(updated)

    def toggle_completion(self, collection: TaskCollection, task_id: str) -> Outcome:
        """Complete an incomplete task, or reopen a completed one."""
        task = collection.get(task_id)
        if task is None:
            return rejections.task_not_found(task_id)
        refusal = gate.check_completion(collection, task_id)
        if refusal is not None:
            return refusal
        return collection.replace(gate.toggled(task, self._clock()))

    def add_dependency(
        self, collection: TaskCollection, task_id: str, depends_on_id: str
    ) -> Outcome:
        """Make depends_on_id a prerequisite of task_id."""
        verdict = check_add_dependency(collection, task_id, depends_on_id)
        if isinstance(verdict, Rejection):
            return verdict
        if verdict.already_present:
            return collection

        task = collection.get(task_id)
        if task is None:
            return rejections.task_not_found(task_id)
        if task.completed:
            return rejections.validation_error(
                f"Task '{task_id}' is completed; mark it incomplete to "
                "change its prerequisites",
                task_id,
            )
        return collection.replace(
            replace(task, dependencies=(*task.dependencies, depends_on_id))
        )

    def remove_dependency(
        self, collection: TaskCollection, task_id: str, depends_on_id: str
    ) -> Outcome:
        """Drop the edge task_id -> depends_on_id if it exists."""
        task = collection.get(task_id)
        if task is None:
            return rejections.task_not_found(task_id)
        if depends_on_id not in task.dependencies:
            return collection
        return collection.replace(
            replace(
                task,
                dependencies=tuple(d for d in task.dependencies if d != depends_on_id),
            )
        )

    def delete(
        self, collection: TaskCollection, task_id: str, confirmed: bool = False
    ) -> Outcome:
        """Remove a task and unlink it from the tasks that depended on it.

        If other tasks depend on it and confirmed is False, nothing is
        removed and a requires_confirmation rejection lists them.
        """
        verdict = check_delete(collection, task_id, confirmed=confirmed)
        if isinstance(verdict, Rejection):
            return verdict
        return verdict.collection
