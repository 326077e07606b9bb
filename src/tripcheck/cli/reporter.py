"""Reporter: outcome reporting for task operations.

Follows the Real/Mock pattern: the CLI reports through RealReporter and
tests swap in MockReporter to inspect what would have been shown.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import typer

from tripcheck.tasks.rejections import Rejection


@dataclass
class ReportEvent:
    """Record of a reporter event for testing."""

    event_type: str
    operation: str
    trip_id: str
    data: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class Reporter(Protocol):
    """Protocol for reporting operation outcomes to the user."""

    def on_applied(self, operation: str, trip_id: str, detail: str) -> None:
        """Called after a new collection was saved."""
        ...

    def on_rejected(self, operation: str, trip_id: str, rejection: Rejection) -> None:
        """Called when an operation was refused."""
        ...

    def on_error(self, operation: str, trip_id: str, error: str) -> None:
        """Called when the operation could not be completed at all."""
        ...


class RealReporter:
    """Reports outcomes to the terminal."""

    def on_applied(self, operation: str, trip_id: str, detail: str) -> None:
        typer.echo(f"[{operation}] {trip_id}: {detail}")

    def on_rejected(self, operation: str, trip_id: str, rejection: Rejection) -> None:
        typer.echo(
            f"[{operation}] rejected ({rejection.kind}): {rejection.message}",
            err=True,
        )

    def on_error(self, operation: str, trip_id: str, error: str) -> None:
        typer.echo(f"[{operation}] FAILED for {trip_id}: {error}", err=True)


@dataclass
class MockReporter:
    """Records reporter events for testing."""

    events: list[ReportEvent] = field(default_factory=list)

    def on_applied(self, operation: str, trip_id: str, detail: str) -> None:
        self.events.append(
            ReportEvent(
                event_type="applied",
                operation=operation,
                trip_id=trip_id,
                data={"detail": detail},
            )
        )

    def on_rejected(self, operation: str, trip_id: str, rejection: Rejection) -> None:
        self.events.append(
            ReportEvent(
                event_type="rejected",
                operation=operation,
                trip_id=trip_id,
                data={
                    "kind": str(rejection.kind),
                    "task_id": rejection.task_id,
                    "related_ids": list(rejection.related_ids),
                },
            )
        )

    def on_error(self, operation: str, trip_id: str, error: str) -> None:
        self.events.append(
            ReportEvent(
                event_type="error",
                operation=operation,
                trip_id=trip_id,
                data={"error": error},
            )
        )
