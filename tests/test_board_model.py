"""Tests for the task model (board/model.py)."""

from __future__ import annotations

import pytest

from farm_task_board.board.model import Lane, Task, TaskPriority, TaskType


class TestTaskCreation:
    def test_default_values(self) -> None:
        t = Task(id=1, title="Water tomatoes")
        assert t.status == "to_do"
        assert t.order_key == 0.0
        assert t.task_type == TaskType.OTHER
        assert t.priority == TaskPriority.MEDIUM
        assert t.completed is False
        assert t.tags == []

    def test_copy_is_detached(self) -> None:
        t = Task(id=1, tags=["north"], metadata={"k": 1})
        clone = t.copy()
        clone.tags.append("south")
        clone.metadata["k"] = 2
        assert t.tags == ["north"]
        assert t.metadata == {"k": 1}
        assert clone == Task(id=1, tags=["north", "south"], metadata={"k": 2}, created_at=t.created_at)

    def test_copy_with_changes(self) -> None:
        t = Task(id=3, status="to_do", order_key=1.0)
        moved = t.copy(status="in_progress", order_key=-1.0)
        assert moved.status == "in_progress"
        assert moved.order_key == -1.0
        assert t.status == "to_do"


class TestLaneParse:
    def test_known_values(self) -> None:
        assert Lane.parse("overdue") is Lane.OVERDUE
        assert Lane.parse(Lane.COMPLETED) is Lane.COMPLETED

    @pytest.mark.parametrize("raw", [None, "", "doing", "TO_DO", 3])
    def test_unknown_values(self, raw: object) -> None:
        assert Lane.parse(raw) is None


class TestSerialization:
    def test_dict_keeps_unknown_status(self) -> None:
        t = Task.from_dict({"id": 7, "title": "Weed beds", "status": "archived"})
        assert t.status == "archived"
        assert t.to_dict()["status"] == "archived"

    def test_dict_coerces_enums_gracefully(self) -> None:
        t = Task.from_dict({"id": 2, "task_type": "juggling", "priority": "high", "status": Lane.OVERDUE})
        assert t.task_type == TaskType.OTHER
        assert t.priority == TaskPriority.HIGH
        assert t.status == "overdue"

    def test_dict_requires_id(self) -> None:
        with pytest.raises(ValueError, match="id"):
            Task.from_dict({"title": "No id"})

    def test_to_dict_uses_plain_values(self) -> None:
        data = Task(id=4, task_type=TaskType.HARVESTING, priority=TaskPriority.LOW).to_dict()
        assert data["task_type"] == "harvesting"
        assert data["priority"] == "low"


class TestFromRecord:
    def test_lookup_objects(self) -> None:
        t = Task.from_record({
            "Id": 12,
            "Name": "Harvest corn",
            "title": "Harvest corn",
            "type": "harvesting",
            "dueDate": "2026-07-01T00:00:00Z",
            "completed": False,
            "priority": "high",
            "farmId": {"Id": 3, "Name": "North Field"},
            "cropId": {"Id": 9, "Name": "Corn"},
            "Tags": "grain, summer",
        })
        assert t.id == 12
        assert t.task_type == TaskType.HARVESTING
        assert t.due_date == "2026-07-01"
        assert (t.farm_id, t.farm_name) == (3, "North Field")
        assert (t.crop_id, t.crop_name) == (9, "Corn")
        assert t.tags == ["grain", "summer"]
        assert t.status == "to_do"

    def test_completed_record_without_status(self) -> None:
        t = Task.from_record({"Id": 1, "title": "Done", "completed": True})
        assert t.status == "completed"

    def test_explicit_status_and_key(self) -> None:
        t = Task.from_record({"Id": 1, "title": "x", "status": "in_progress", "order_key": 2.5, "farmId": 4, "cropId": None})
        assert t.status == "in_progress"
        assert t.order_key == 2.5
        assert t.farm_id == 4
        assert t.crop_id is None

    def test_to_record_round_trips_board_fields(self) -> None:
        t = Task(id=5, title="Fertilize", status="overdue", order_key=3.0, farm_id=2, tags=["a", "b"])
        back = Task.from_record(t.to_record())
        assert back.status == "overdue"
        assert back.order_key == 3.0
        assert back.farm_id == 2
        assert back.tags == ["a", "b"]
