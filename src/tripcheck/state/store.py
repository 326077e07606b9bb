"""JSON-file store for per-trip task collections."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from tripcheck.tasks.models import TaskCollection

STORE_ENV_VAR = "TRIPCHECK_STORE"


def default_store_path() -> Path:
    """Return the store path, honouring the TRIPCHECK_STORE override."""
    override = os.environ.get(STORE_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".tripcheck" / "tasks.json"


class StaleCollectionError(RuntimeError):
    """Raised when saving over a collection that changed since it was loaded."""

    def __init__(self, trip_id: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Tasks for trip '{trip_id}' changed since they were loaded "
            f"(expected revision {expected}, found {actual}); reload and retry"
        )
        self.trip_id = trip_id
        self.expected = expected
        self.actual = actual


@dataclass
class StoredCollection:
    """A collection together with the revision it was read at."""

    collection: TaskCollection = field(default_factory=TaskCollection)
    revision: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"revision": self.revision, **self.collection.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | list[Any]) -> "StoredCollection":
        if isinstance(data, list):
            return cls(collection=TaskCollection.from_dict(data))
        return cls(
            collection=TaskCollection.from_dict(data),
            revision=data.get("revision", 0),
        )


class TaskStore:
    """Keeps every trip's tasks in one JSON file keyed by trip id.

    save() is compare-and-set on the revision, so a collection computed
    from an old read cannot overwrite newer changes.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or default_store_path()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, StoredCollection]:
        if not self._path.exists():
            return {}
        data = json.loads(self._path.read_text())
        return {
            trip_id: StoredCollection.from_dict(entry)
            for trip_id, entry in data.get("trips", {}).items()
        }

    def _save(self, trips: dict[str, StoredCollection]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        data = {"trips": {trip_id: s.to_dict() for trip_id, s in trips.items()}}
        self._path.write_text(json.dumps(data, indent=2))

    def load(self, trip_id: str) -> StoredCollection:
        """Return the trip's tasks, or an empty collection at revision 0."""
        return self._load().get(trip_id, StoredCollection())

    def save(
        self, trip_id: str, collection: TaskCollection, expected_revision: int
    ) -> int:
        """Store a collection and return its new revision.

        Raises StaleCollectionError if the stored revision is no longer
        expected_revision.
        """
        trips = self._load()
        current = trips.get(trip_id, StoredCollection()).revision
        if current != expected_revision:
            raise StaleCollectionError(trip_id, expected_revision, current)
        trips[trip_id] = StoredCollection(collection=collection, revision=current + 1)
        self._save(trips)
        return current + 1
