"""Tests for the record client and seed loading (records/)."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from farm_task_board.board.model import Task
from farm_task_board.errors import PersistenceError
from farm_task_board.records.client import InMemoryRecordClient, _unwrap
from farm_task_board.records.seed import load_seed_records


class TestUnwrap:
    def test_data_payload(self) -> None:
        assert _unwrap({"success": True, "data": [1, 2]}, "fetch") == [1, 2]

    def test_results_payload(self) -> None:
        response = {"success": True, "results": [{"success": True, "data": {"Id": 1}}]}
        assert _unwrap(response, "update", 1) == {"Id": 1}

    def test_top_level_failure(self) -> None:
        with pytest.raises(PersistenceError, match="quota exceeded") as excinfo:
            _unwrap({"success": False, "message": "quota exceeded"}, "update", 4)
        assert excinfo.value.task_id == 4

    def test_top_level_failure_without_message(self) -> None:
        with pytest.raises(PersistenceError, match="Failed to delete task"):
            _unwrap({"success": False}, "delete", 4)

    def test_per_record_failure(self) -> None:
        response = {"success": True, "results": [{"success": False, "message": "field order_key is read-only"}]}
        with pytest.raises(PersistenceError, match="read-only"):
            _unwrap(response, "update", 2)


class TestInMemoryRecordClient:
    def test_fetch(self) -> None:
        client = InMemoryRecordClient([{"Id": 3, "title": "Weed rows"}, {"Id": 1, "title": "Mulch"}])
        tasks = asyncio.run(client.fetch_tasks())
        assert [(t.id, t.title) for t in tasks] == [(3, "Weed rows"), (1, "Mulch")]

    def test_update(self) -> None:
        client = InMemoryRecordClient([{"Id": 1, "title": "Mulch", "status": "to_do"}])
        task = asyncio.run(client.update_task(1, {"status": "completed", "order_key": 4.0}))
        assert task.status == "completed"
        assert task.order_key == 4.0
        assert client.rows()[0]["status"] == "completed"
        assert client.update_calls == [(1, {"status": "completed", "order_key": 4.0})]

    def test_update_missing_record(self) -> None:
        client = InMemoryRecordClient()
        with pytest.raises(PersistenceError, match="does not exist"):
            asyncio.run(client.update_task(8, {"status": "to_do"}))

    def test_create_assigns_next_id(self) -> None:
        client = InMemoryRecordClient([{"Id": 7, "title": "Mulch"}])
        created = asyncio.run(client.create_task(Task(id=0, title="Prune", tags=["orchard"])))
        assert created.id == 8
        assert created.tags == ["orchard"]
        assert [r["Id"] for r in client.rows()] == [7, 8]

    def test_delete(self) -> None:
        client = InMemoryRecordClient([{"Id": 7, "title": "Mulch"}])
        assert asyncio.run(client.delete_task(7)) is True
        assert client.rows() == []
        with pytest.raises(PersistenceError):
            asyncio.run(client.delete_task(7))

    def test_rows_are_copies(self) -> None:
        client = InMemoryRecordClient([{"Id": 1, "title": "Mulch"}])
        client.rows()[0]["title"] = "changed"
        assert client.rows()[0]["title"] == "Mulch"


class TestSeed:
    def test_missing_file(self, tmp_path: Path) -> None:
        assert load_seed_records(tmp_path / "absent.yaml") == []

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "seed.yaml"
        path.write_text("", encoding="utf-8")
        assert load_seed_records(path) == []

    def test_rows(self, tmp_path: Path) -> None:
        path = tmp_path / "seed.yaml"
        path.write_text(
            "version: 1\n"
            "tasks:\n"
            "  - Id: 1\n"
            "    title: Water tomatoes\n"
            "    dueDate: '2026-06-01'\n"
            "  - not a row\n",
            encoding="utf-8",
        )
        rows = load_seed_records(path)
        assert rows == [{"Id": 1, "title": "Water tomatoes", "dueDate": "2026-06-01"}]

    @pytest.mark.parametrize("content", ["tasks: [unclosed\n", "- 1\n- 2\n", "tasks: 5\n"])
    def test_malformed(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "seed.yaml"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ValueError, match="seed.yaml"):
            load_seed_records(path)
