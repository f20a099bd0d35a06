"""Record-storage client contract and an in-memory implementation.

The board only needs one call from the hosted record service during a move
(:meth:`RecordClient.update_task`) and one to reload the full list
(:meth:`RecordClient.fetch_tasks`). Create and delete are here for the CRUD
layer that sits next to the board.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from loguru import logger

from ..board.model import Task
from ..constants import TASK_TABLE
from ..errors import PersistenceError


class RecordClient(ABC):
    @abstractmethod
    async def fetch_tasks(self) -> list[Task]:
        raise NotImplementedError

    @abstractmethod
    async def update_task(self, task_id: int, fields: dict[str, Any]) -> Task:
        """Persist *fields* on one task and return the stored task.

        Raises:
            PersistenceError: the service rejected the update or was unreachable.
        """
        raise NotImplementedError

    @abstractmethod
    async def create_task(self, task: Task) -> Task:
        raise NotImplementedError

    @abstractmethod
    async def delete_task(self, task_id: int) -> bool:
        raise NotImplementedError


def _unwrap(response: dict[str, Any], action: str, task_id: Optional[int] = None) -> Any:
    """Return the payload of a service response or raise PersistenceError.

    Responses carry a top-level ``success`` flag and, for writes, a
    ``results`` list with one ``success`` flag per record.
    """
    if not response.get("success"):
        message = str(response.get("message") or f"Failed to {action} task")
        logger.error("Error during {} of task {}: {}", action, task_id, message)
        raise PersistenceError(message, task_id=task_id)
    results = response.get("results")
    if results is not None:
        failed = [r for r in results if not r.get("success")]
        if failed:
            logger.error("Failed to {} task {} records: {}", action, len(failed), failed)
            raise PersistenceError(str(failed[0].get("message") or f"Failed to {action} task"), task_id=task_id)
        return results[0].get("data") if results else None
    return response.get("data")


class InMemoryRecordClient(RecordClient):
    """Dict-backed stand-in for the hosted record service.

    Rows are kept in the service's own field layout and every call goes
    through the same response envelope the hosted service uses, so the
    failure paths match.
    """

    def __init__(self, records: Optional[Iterable[dict[str, Any]]] = None, table: str = TASK_TABLE) -> None:
        self.table = table
        self._rows: dict[int, dict[str, Any]] = {}
        self._lock = asyncio.Lock()
        for row in records or []:
            self._rows[int(row["Id"])] = dict(row)
        self._next_id = max(self._rows, default=0) + 1
        self.update_calls: list[tuple[int, dict[str, Any]]] = []

    # -- service emulation --------------------------------------------------

    def _fetch(self) -> dict[str, Any]:
        return {"success": True, "data": [dict(r) for r in self._rows.values()]}

    def _update(self, task_id: int, fields: dict[str, Any]) -> dict[str, Any]:
        row = self._rows.get(task_id)
        if row is None:
            return {
                "success": True,
                "results": [{"success": False, "message": f"Record {task_id} does not exist"}],
            }
        row.update(fields)
        return {"success": True, "results": [{"success": True, "data": dict(row)}]}

    def _create(self, row: dict[str, Any]) -> dict[str, Any]:
        row = dict(row)
        row["Id"] = self._next_id
        self._next_id += 1
        self._rows[row["Id"]] = row
        return {"success": True, "results": [{"success": True, "data": dict(row)}]}

    def _delete(self, task_id: int) -> dict[str, Any]:
        if self._rows.pop(task_id, None) is None:
            return {
                "success": True,
                "results": [{"success": False, "message": f"Record {task_id} does not exist"}],
            }
        return {"success": True, "results": [{"success": True}]}

    # -- RecordClient -------------------------------------------------------

    async def fetch_tasks(self) -> list[Task]:
        async with self._lock:
            rows = _unwrap(self._fetch(), "fetch") or []
        return [Task.from_record(r) for r in rows]

    async def update_task(self, task_id: int, fields: dict[str, Any]) -> Task:
        logger.debug("Updating {} record {}: {}", self.table, task_id, fields)
        async with self._lock:
            self.update_calls.append((task_id, dict(fields)))
            row = _unwrap(self._update(task_id, fields), "update", task_id)
        return Task.from_record(row)

    async def create_task(self, task: Task) -> Task:
        payload = task.to_record()
        payload.pop("Id", None)
        async with self._lock:
            row = _unwrap(self._create(payload), "create")
        return Task.from_record(row)

    async def delete_task(self, task_id: int) -> bool:
        async with self._lock:
            _unwrap(self._delete(task_id), "delete", task_id)
        return True

    def rows(self) -> list[dict[str, Any]]:
        return [dict(r) for r in self._rows.values()]
