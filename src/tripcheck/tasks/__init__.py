"""Task records, dependency rules and the collection manager."""

from tripcheck.tasks.gate import CompletionState, check_completion, open_prerequisites
from tripcheck.tasks.graph import (
    DeleteApproval,
    DependencyGraph,
    EdgeApproval,
    candidate_dependencies,
    check_add_dependency,
    check_delete,
)
from tripcheck.tasks.manager import TaskCollectionManager
from tripcheck.tasks.models import (
    DuplicateTaskIdError,
    Task,
    TaskCategory,
    TaskCollection,
    TaskPriority,
    TaskValidationError,
)
from tripcheck.tasks.rejections import Rejection, RejectionKind

__all__ = [
    "CompletionState",
    "DeleteApproval",
    "DependencyGraph",
    "DuplicateTaskIdError",
    "EdgeApproval",
    "Rejection",
    "RejectionKind",
    "Task",
    "TaskCategory",
    "TaskCollection",
    "TaskCollectionManager",
    "TaskPriority",
    "TaskValidationError",
    "candidate_dependencies",
    "check_add_dependency",
    "check_completion",
    "check_delete",
    "open_prerequisites",
]
