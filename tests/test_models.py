"""Tests for the Task and TaskCollection models."""

import json

import pytest

from tripcheck.tasks.models import (
    DuplicateTaskIdError,
    Task,
    TaskCategory,
    TaskCollection,
    TaskPriority,
    TaskValidationError,
)


class TestTask:
    def test_create_task(self):
        task = Task(id="t1", text="Book flight")
        assert task.id == "t1"
        assert task.text == "Book flight"
        assert task.completed is False
        assert task.completed_at is None
        assert task.dependencies == ()
        assert task.category == TaskCategory.preparation
        assert task.priority == TaskPriority.medium

    def test_created_at_auto_populated(self):
        task = Task(id="t1", text="Book flight")
        assert task.created_at

    @pytest.mark.parametrize("text", ["", "   ", "\t\n"])
    def test_blank_text_rejected(self, text):
        with pytest.raises(TaskValidationError, match="must not be empty"):
            Task(id="t1", text=text)

    def test_self_dependency_rejected(self):
        with pytest.raises(TaskValidationError, match="cannot depend on itself"):
            Task(id="t1", text="Loop", dependencies=("t1",))

    def test_duplicate_dependencies_collapsed(self):
        task = Task(id="t1", text="Pack", dependencies=("a", "b", "a"))
        assert task.dependencies == ("a", "b")

    def test_list_dependencies_become_tuple(self):
        task = Task(id="t1", text="Pack", dependencies=["a"])  # type: ignore[arg-type]
        assert task.dependencies == ("a",)

    def test_completed_requires_completed_at(self):
        with pytest.raises(TaskValidationError, match="completed_at"):
            Task(id="t1", text="Pack", completed=True)

    def test_completed_at_requires_completed(self):
        with pytest.raises(TaskValidationError, match="completed_at"):
            Task(id="t1", text="Pack", completed_at="2026-01-01T00:00:00+00:00")

    def test_category_string_normalised(self):
        task = Task(id="t1", text="Pack", category="packing")  # type: ignore[arg-type]
        assert task.category is TaskCategory.packing

    def test_unknown_category_rejected(self):
        with pytest.raises(TaskValidationError):
            Task(id="t1", text="Pack", category="camping")  # type: ignore[arg-type]

    def test_bad_date_rejected(self):
        with pytest.raises(TaskValidationError, match="YYYY-MM-DD"):
            Task(id="t1", text="Pack", date="01/02/2026")

    def test_non_string_date_rejected(self):
        with pytest.raises(TaskValidationError, match="YYYY-MM-DD"):
            Task(id="t1", text="Pack", date=5)  # type: ignore[arg-type]

    def test_non_string_time_rejected(self):
        with pytest.raises(TaskValidationError, match="HH:MM"):
            Task(id="t1", text="Pack", time=930)  # type: ignore[arg-type]

    @pytest.mark.parametrize("value", ["9:30", "24:00", "12:60", "noon"])
    def test_bad_time_rejected(self, value):
        with pytest.raises(TaskValidationError, match="HH:MM"):
            Task(id="t1", text="Pack", time=value)

    def test_task_is_frozen(self):
        task = Task(id="t1", text="Pack")
        with pytest.raises(AttributeError):
            task.text = "Unpack"  # type: ignore[misc]

    def test_to_dict_uses_storage_keys(self):
        task = Task(
            id="t2",
            text="Pack bags",
            date="2026-05-01",
            time="08:15",
            category=TaskCategory.packing,
            priority=TaskPriority.high,
            created_at="2026-04-01T10:00:00+00:00",
            dependencies=("t1",),
        )
        assert task.to_dict() == {
            "id": "t2",
            "text": "Pack bags",
            "date": "2026-05-01",
            "time": "08:15",
            "category": "packing",
            "priority": "high",
            "completed": False,
            "completedAt": None,
            "createdAt": "2026-04-01T10:00:00+00:00",
            "dependencies": ["t1"],
        }

    def test_from_dict_legacy_record(self):
        data = {
            "id": 1718000000000,
            "text": "Renew passport",
            "completed": False,
            "date": "",
            "category": "documents",
            "priority": "urgent",
            "createdAt": "2024-06-10T06:13:20.000Z",
            "completedAt": None,
        }
        task = Task.from_dict(data)
        assert task.id == "1718000000000"
        assert task.date is None
        assert task.dependencies == ()
        assert task.category == TaskCategory.preparation
        assert task.priority == TaskPriority.medium

    def test_from_dict_numeric_dependencies(self):
        data = {"id": 2, "text": "Pack bags", "dependencies": [1]}
        task = Task.from_dict(data)
        assert task.dependencies == ("1",)


class TestTaskCollection:
    def _make_collection(self) -> TaskCollection:
        return TaskCollection(
            tasks=(
                Task(id="1", text="Book flight"),
                Task(id="2", text="Pack bags", dependencies=("1",)),
            )
        )

    def test_get(self):
        collection = self._make_collection()
        assert collection.get("1").text == "Book flight"
        assert collection.get("missing") is None

    def test_contains_and_len(self):
        collection = self._make_collection()
        assert "2" in collection
        assert "3" not in collection
        assert len(collection) == 2

    def test_duplicate_ids_raise(self):
        with pytest.raises(DuplicateTaskIdError, match="Duplicate task ID: 1"):
            TaskCollection(
                tasks=(Task(id="1", text="a"), Task(id="1", text="b"))
            )

    def test_append_returns_new_collection(self):
        collection = self._make_collection()
        bigger = collection.append(Task(id="3", text="Print tickets"))
        assert collection.ids() == ["1", "2"]
        assert bigger.ids() == ["1", "2", "3"]

    def test_replace_keeps_position(self):
        collection = self._make_collection()
        updated = collection.replace(Task(id="1", text="Book cheaper flight"))
        assert updated.ids() == ["1", "2"]
        assert updated.get("1").text == "Book cheaper flight"
        assert collection.get("1").text == "Book flight"

    def test_replace_unknown_raises(self):
        with pytest.raises(KeyError):
            self._make_collection().replace(Task(id="9", text="Nope"))

    def test_remove(self):
        collection = self._make_collection().remove("1")
        assert collection.ids() == ["2"]

    def test_index_of(self):
        collection = self._make_collection()
        assert collection.index_of("2") == 1
        assert collection.index_of("9") == -1

    def test_validate_valid_collection(self):
        assert self._make_collection().validate() == []

    def test_validate_unknown_dependency(self):
        collection = TaskCollection(
            tasks=(Task(id="1", text="a", dependencies=("ghost",)),)
        )
        errors = collection.validate()
        assert any("unknown task 'ghost'" in e for e in errors)

    def test_validate_cycle(self):
        collection = TaskCollection(
            tasks=(
                Task(id="a", text="a", dependencies=("b",)),
                Task(id="b", text="b", dependencies=("a",)),
            )
        )
        errors = collection.validate()
        assert any("cycle" in e.lower() for e in errors)

    def test_json_roundtrip(self):
        original = TaskCollection(
            tasks=(
                Task(
                    id="1",
                    text="Book flight",
                    completed=True,
                    completed_at="2026-03-01T09:00:00+00:00",
                    created_at="2026-02-01T09:00:00+00:00",
                ),
                Task(
                    id="2",
                    text="Pack bags",
                    date="2026-03-05",
                    time="07:00",
                    category=TaskCategory.packing,
                    created_at="2026-02-02T09:00:00+00:00",
                    dependencies=("1",),
                ),
            )
        )
        restored = TaskCollection.from_json(original.to_json())
        assert restored == original

    def test_from_json_bare_array(self):
        raw = json.dumps(
            [
                {"id": 1, "text": "Book flight", "dependencies": []},
                {"id": 2, "text": "Pack bags", "dependencies": [1]},
            ]
        )
        collection = TaskCollection.from_json(raw)
        assert collection.ids() == ["1", "2"]
        assert collection.get("2").dependencies == ("1",)
