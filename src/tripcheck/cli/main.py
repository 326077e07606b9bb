"""tripcheck CLI for trip checklist tasks.

Subcommands (under ``task``):
    add        — Add a task to a trip
    list       — List a trip's tasks with status and prerequisites
    edit       — Change a task's description or schedule
    toggle     — Complete or reopen a task
    depend     — Make one task a prerequisite of another
    undepend   — Remove a prerequisite link
    delete     — Delete a task (asks before unlinking dependents)
    order      — Show tasks with prerequisites first
    upcoming   — Show tasks due soon
    candidates — Show tasks that could become prerequisites
    check      — Check stored tasks for broken links and cycles
"""

import json
from collections.abc import Callable
from datetime import datetime, timedelta

import typer

from tripcheck.cli.reporter import RealReporter, Reporter
from tripcheck.state.store import StaleCollectionError, StoredCollection, TaskStore
from tripcheck.tasks.graph import DependencyGraph, candidate_dependencies
from tripcheck.tasks.manager import Outcome, TaskCollectionManager
from tripcheck.tasks.models import (
    DuplicateTaskIdError,
    Task,
    TaskCategory,
    TaskCollection,
    TaskPriority,
    TaskValidationError,
)
from tripcheck.tasks.rejections import Rejection, RejectionKind
from tripcheck.tasks.views import filter_tasks, group_by_date, task_status, upcoming

app = typer.Typer(name="tripcheck", no_args_is_help=True)
task_app = typer.Typer(name="task", help="Manage a trip's checklist tasks.")
app.add_typer(task_app)

# Stored data that cannot be turned back into a valid collection
UNREADABLE_STORE_ERRORS = (
    TaskValidationError,
    DuplicateTaskIdError,
    json.JSONDecodeError,
    KeyError,
)


def get_default_store() -> TaskStore:
    """Return the default task store."""
    return TaskStore()


def get_default_reporter() -> Reporter:
    """Return the default reporter."""
    return RealReporter()


def get_default_manager() -> TaskCollectionManager:
    """Return the default task manager."""
    return TaskCollectionManager()


def apply_operation(
    store: TaskStore,
    reporter: Reporter,
    trip_id: str,
    operation: str,
    change: Callable[[TaskCollection], Outcome],
) -> Outcome:
    """Run one manager operation against the latest stored collection.

    The new collection is saved only if it differs from the loaded one.
    Raises StaleCollectionError if another writer saved in between.
    """
    stored = store.load(trip_id)
    outcome = change(stored.collection)
    if isinstance(outcome, Rejection):
        reporter.on_rejected(operation, trip_id, outcome)
        return outcome
    if outcome != stored.collection:
        store.save(trip_id, outcome, stored.revision)
    return outcome


def load_trip(
    store: TaskStore, reporter: Reporter, trip_id: str, operation: str
) -> StoredCollection:
    """Load a trip's tasks, exiting with an error if the stored data is unreadable."""
    try:
        return store.load(trip_id)
    except UNREADABLE_STORE_ERRORS as exc:
        reporter.on_error(operation, trip_id, f"stored tasks are unreadable: {exc}")
        raise typer.Exit(code=1) from exc


def format_task(collection: TaskCollection, task: Task) -> str:
    """Render one task as a single line."""
    mark = "x" if task.completed else " "
    when = " ".join(part for part in (task.date, task.time) if part)
    when_str = f" @ {when}" if when else ""
    needs = f" needs: {', '.join(task.dependencies)}" if task.dependencies else ""
    return (
        f"  [{mark}] {task.id}: {task.text}{when_str} "
        f"({task.category}, {task.priority}) {task_status(collection, task.id)}"
        f"{needs}"
    )


def _load_collection(trip_id: str, operation: str) -> TaskCollection:
    return load_trip(
        get_default_store(), get_default_reporter(), trip_id, operation
    ).collection


def _run(
    trip_id: str,
    operation: str,
    change: Callable[[TaskCollection], Outcome],
) -> TaskCollection:
    store = get_default_store()
    reporter = get_default_reporter()
    try:
        outcome = apply_operation(store, reporter, trip_id, operation, change)
    except StaleCollectionError as exc:
        reporter.on_error(operation, trip_id, str(exc))
        raise typer.Exit(code=1) from exc
    except UNREADABLE_STORE_ERRORS as exc:
        reporter.on_error(operation, trip_id, f"stored tasks are unreadable: {exc}")
        raise typer.Exit(code=1) from exc
    if isinstance(outcome, Rejection):
        raise typer.Exit(code=1)
    return outcome


@task_app.command("add")
def add_cmd(
    trip: str = typer.Argument(..., help="Trip identifier."),
    text: str = typer.Argument(..., help="What needs to be done."),
    date: str | None = typer.Option(None, help="Due date (YYYY-MM-DD)."),
    time: str | None = typer.Option(None, help="Due time (HH:MM)."),
    category: TaskCategory = typer.Option(
        TaskCategory.preparation, help="Task category."
    ),
    priority: TaskPriority = typer.Option(TaskPriority.medium, help="Task priority."),
) -> None:
    """Add a task to a trip."""
    manager = get_default_manager()
    collection = _run(
        trip,
        "add",
        lambda c: manager.add(
            c, text, date=date, time=time, category=category, priority=priority
        ),
    )
    task = collection.tasks[-1]
    get_default_reporter().on_applied("add", trip, f"added {task.id}: {task.text}")


@task_app.command("list")
def list_cmd(
    trip: str = typer.Argument(..., help="Trip identifier."),
    hide_completed: bool = typer.Option(
        False, "--hide-completed", help="Leave out completed tasks."
    ),
    by_date: bool = typer.Option(False, "--by-date", help="Group tasks by due date."),
) -> None:
    """List a trip's tasks."""
    collection = _load_collection(trip, "list")
    tasks = filter_tasks(collection, show_completed=not hide_completed)
    if not tasks:
        typer.echo("No tasks found.")
        return
    if not by_date:
        for task in tasks:
            typer.echo(format_task(collection, task))
        return
    for day, group in group_by_date(tasks):
        typer.echo(day or "No date")
        for task in group:
            typer.echo(format_task(collection, task))


@task_app.command("edit")
def edit_cmd(
    trip: str = typer.Argument(..., help="Trip identifier."),
    task_id: str = typer.Argument(..., help="Task to edit."),
    text: str | None = typer.Option(None, help="New description."),
    date: str | None = typer.Option(None, help="New due date (YYYY-MM-DD)."),
    time: str | None = typer.Option(None, help="New due time (HH:MM)."),
    category: TaskCategory | None = typer.Option(None, help="New category."),
    priority: TaskPriority | None = typer.Option(None, help="New priority."),
) -> None:
    """Change a task's description or schedule."""
    patch = {
        key: value
        for key, value in {
            "text": text,
            "date": date,
            "time": time,
            "category": category,
            "priority": priority,
        }.items()
        if value is not None
    }
    if not patch:
        typer.echo("Error: nothing to change", err=True)
        raise typer.Exit(code=1)
    manager = get_default_manager()
    _run(trip, "edit", lambda c: manager.edit(c, task_id, patch))
    get_default_reporter().on_applied(
        "edit", trip, f"updated {task_id} ({', '.join(sorted(patch))})"
    )


@task_app.command("toggle")
def toggle_cmd(
    trip: str = typer.Argument(..., help="Trip identifier."),
    task_id: str = typer.Argument(..., help="Task to complete or reopen."),
) -> None:
    """Complete an open task or reopen a completed one."""
    manager = get_default_manager()
    collection = _run(trip, "toggle", lambda c: manager.toggle_completion(c, task_id))
    task = collection.get(task_id)
    state = "completed" if task is not None and task.completed else "reopened"
    get_default_reporter().on_applied("toggle", trip, f"{state} {task_id}")


@task_app.command("depend")
def depend_cmd(
    trip: str = typer.Argument(..., help="Trip identifier."),
    task_id: str = typer.Argument(..., help="Task that gains a prerequisite."),
    on_id: str = typer.Argument(..., help="Prerequisite task."),
) -> None:
    """Make ON_ID a prerequisite of TASK_ID."""
    manager = get_default_manager()
    _run(trip, "depend", lambda c: manager.add_dependency(c, task_id, on_id))
    get_default_reporter().on_applied("depend", trip, f"{task_id} now needs {on_id}")


@task_app.command("undepend")
def undepend_cmd(
    trip: str = typer.Argument(..., help="Trip identifier."),
    task_id: str = typer.Argument(..., help="Task that loses a prerequisite."),
    on_id: str = typer.Argument(..., help="Prerequisite to remove."),
) -> None:
    """Remove ON_ID from TASK_ID's prerequisites."""
    manager = get_default_manager()
    _run(trip, "undepend", lambda c: manager.remove_dependency(c, task_id, on_id))
    get_default_reporter().on_applied(
        "undepend", trip, f"{task_id} no longer needs {on_id}"
    )


@task_app.command("delete")
def delete_cmd(
    trip: str = typer.Argument(..., help="Trip identifier."),
    task_id: str = typer.Argument(..., help="Task to delete."),
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Delete without asking, unlinking dependents."
    ),
) -> None:
    """Delete a task.

    If other tasks depend on it, asks for confirmation first (unless
    --yes is given) and then removes it from their prerequisites.
    """
    store = get_default_store()
    reporter = get_default_reporter()
    manager = get_default_manager()

    stored = load_trip(store, reporter, trip, "delete")
    outcome = manager.delete(stored.collection, task_id, confirmed=yes)
    if (
        isinstance(outcome, Rejection)
        and outcome.kind == RejectionKind.requires_confirmation
    ):
        if not typer.confirm(outcome.message):
            typer.echo("Aborted.")
            return
        outcome = manager.delete(stored.collection, task_id, confirmed=True)

    if isinstance(outcome, Rejection):
        reporter.on_rejected("delete", trip, outcome)
        raise typer.Exit(code=1)
    try:
        store.save(trip, outcome, stored.revision)
    except StaleCollectionError as exc:
        reporter.on_error("delete", trip, str(exc))
        raise typer.Exit(code=1) from exc
    reporter.on_applied("delete", trip, f"deleted {task_id}")


@task_app.command("order")
def order_cmd(trip: str = typer.Argument(..., help="Trip identifier.")) -> None:
    """Show tasks with prerequisites first."""
    collection = _load_collection(trip, "order")
    try:
        ordered = DependencyGraph(collection).execution_order()
    except ValueError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    if not ordered:
        typer.echo("No tasks found.")
        return
    for i, task in enumerate(ordered, start=1):
        typer.echo(f"  {i}. {task.id}: {task.text}")


@task_app.command("upcoming")
def upcoming_cmd(
    trip: str = typer.Argument(..., help="Trip identifier."),
    hours: int = typer.Option(24, help="How far ahead to look, in hours."),
) -> None:
    """Show open tasks due within the next few hours."""
    collection = _load_collection(trip, "upcoming")
    due = upcoming(collection, datetime.now(), window=timedelta(hours=hours))
    if not due:
        typer.echo("Nothing due soon.")
        return
    for task in due:
        typer.echo(format_task(collection, task))


@task_app.command("candidates")
def candidates_cmd(
    trip: str = typer.Argument(..., help="Trip identifier."),
    task_id: str = typer.Argument(..., help="Task to find prerequisites for."),
) -> None:
    """Show tasks that could be added as prerequisites of TASK_ID."""
    collection = _load_collection(trip, "candidates")
    if task_id not in collection:
        typer.echo(f"Error: task '{task_id}' not found", err=True)
        raise typer.Exit(code=1)
    candidates = candidate_dependencies(collection, task_id)
    if not candidates:
        typer.echo("No available tasks to add as prerequisites.")
        return
    for task in candidates:
        typer.echo(f"  {task.id}: {task.text}")


@task_app.command("check")
def check_cmd(trip: str = typer.Argument(..., help="Trip identifier.")) -> None:
    """Check stored tasks for unknown prerequisites and cycles."""
    errors = _load_collection(trip, "check").validate()
    if not errors:
        typer.echo("OK")
        return
    for error in errors:
        typer.echo(f"  {error}", err=True)
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
