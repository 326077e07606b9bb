"""Rejection values returned by task operations that were refused."""

from dataclasses import dataclass
from enum import StrEnum


class RejectionKind(StrEnum):
    validation_error = "validation_error"
    self_dependency = "self_dependency"
    would_create_cycle = "would_create_cycle"
    task_not_found = "task_not_found"
    requires_confirmation = "requires_confirmation"
    dependencies_incomplete = "dependencies_incomplete"


@dataclass(frozen=True)
class Rejection:
    """An expected, recoverable refusal of an operation.

    related_ids depends on the kind:
        requires_confirmation — the dependents of the task being deleted
        dependencies_incomplete — the prerequisites still open
        would_create_cycle — the cycle the new edge would close
    """

    kind: RejectionKind
    message: str
    task_id: str | None = None
    related_ids: tuple[str, ...] = ()

    def __str__(self) -> str:
        return self.message


def validation_error(message: str, task_id: str | None = None) -> Rejection:
    return Rejection(RejectionKind.validation_error, message, task_id)


def self_dependency(task_id: str) -> Rejection:
    return Rejection(
        RejectionKind.self_dependency,
        f"Task '{task_id}' cannot depend on itself",
        task_id,
    )


def would_create_cycle(task_id: str, depends_on_id: str, cycle: list[str]) -> Rejection:
    return Rejection(
        RejectionKind.would_create_cycle,
        f"Task '{task_id}' cannot depend on '{depends_on_id}': "
        f"dependency cycle {' -> '.join(cycle)}",
        task_id,
        tuple(cycle),
    )


def task_not_found(task_id: str) -> Rejection:
    return Rejection(
        RejectionKind.task_not_found,
        f"Task '{task_id}' not found; refresh the task list",
        task_id,
    )


def requires_confirmation(task_id: str, dependents: list[str]) -> Rejection:
    return Rejection(
        RejectionKind.requires_confirmation,
        f"Task '{task_id}' is a prerequisite of {', '.join(dependents)}; "
        "confirm to delete it and unlink those tasks",
        task_id,
        tuple(dependents),
    )


def dependencies_incomplete(task_id: str, open_ids: list[str]) -> Rejection:
    return Rejection(
        RejectionKind.dependencies_incomplete,
        f"Task '{task_id}' cannot be completed until these are done: "
        f"{', '.join(open_ids)}",
        task_id,
        tuple(open_ids),
    )
