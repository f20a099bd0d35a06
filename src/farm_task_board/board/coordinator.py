"""Move coordinator: optimistic drag-and-drop moves with full-board rollback.

A move runs through ``idle -> applying -> persisting -> committed`` on the
happy path. The board is updated in the store (and therefore on screen)
before the record service is called; if that call fails the whole pre-move
task list is put back and the failure is raised to the caller.

Moves are serialized: a move issued while another is persisting waits for
it to finish and is then validated against the board the first one left.
"""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

from loguru import logger

from ..constants import DEFAULT_HISTORY_SIZE
from ..errors import InvalidMoveError, InvalidTaskError, NotFoundError, PersistenceError
from ..records.client import RecordClient
from .grouping import find_overdue, group, lane_of
from .model import EDITABLE_FIELDS, Lane, Task, TaskPriority, TaskType
from .ordering import allocate, is_between, rebalance
from .store import TaskStore

Renderer = Callable[[dict[Lane, list[Task]]], None]
T = TypeVar("T")


class MoveState(str, Enum):
    IDLE = "idle"
    APPLYING = "applying"
    PERSISTING = "persisting"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass(frozen=True)
class MoveIntent:
    """A drop emitted by the board view."""

    task_id: int
    lane: Lane
    index: int


@dataclass
class MoveOutcome:
    intent: MoveIntent
    state: MoveState
    source_lane: Lane
    source_index: int
    order_key: Optional[float] = None
    task: Optional[Task] = None
    error: Optional[str] = None

    @property
    def noop(self) -> bool:
        return self.state == MoveState.IDLE


def _validate_intent(task_id: Any, lane: Any, index: Any) -> MoveIntent:
    parsed = Lane.parse(lane)
    if parsed is None:
        raise InvalidMoveError(f"Unknown lane {lane!r}; expected one of {[l.value for l in Lane]}")
    if isinstance(index, bool) or not isinstance(index, int):
        raise InvalidMoveError(f"Target index must be an integer, got {index!r}")
    if index < 0:
        raise InvalidMoveError(f"Target index must be >= 0, got {index}")
    if isinstance(task_id, bool) or not isinstance(task_id, int):
        raise InvalidMoveError(f"Task id must be an integer, got {task_id!r}")
    return MoveIntent(task_id=task_id, lane=parsed, index=index)


def _validate_changes(changes: dict[str, Any]) -> dict[str, Any]:
    """Check an edit against :data:`EDITABLE_FIELDS` and coerce enum values."""
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise InvalidTaskError(f"Fields {sorted(unknown)} cannot be edited; use a move for status and order")
    out = dict(changes)
    if "title" in out and not str(out["title"] or "").strip():
        raise InvalidTaskError("Task title cannot be empty")
    if "completed" in out and not isinstance(out["completed"], bool):
        raise InvalidTaskError(f"completed must be a boolean, got {out['completed']!r}")
    for name, enum_cls in (("task_type", TaskType), ("priority", TaskPriority)):
        if name in out:
            try:
                out[name] = enum_cls(out[name])
            except ValueError as exc:
                raise InvalidTaskError(str(exc)) from exc
    if "tags" in out:
        out["tags"] = list(out["tags"] or [])
    return out


def _with_keys(tasks: list[Task], keys: dict[int, float]) -> list[Task]:
    return [t.copy(order_key=keys[t.id]) if t.id in keys else t for t in tasks]


class MoveCoordinator:
    """Apply board moves optimistically and roll back on persistence failure.

    Parameters
    ----------
    store:
        The board's task store; the coordinator mutates it only through
        ``replace_all``.
    client:
        Record-storage client used to persist moves and reload the board.
    persist_timeout:
        Seconds to wait for the record service before treating the move as
        failed. ``None`` waits indefinitely.
    history_size:
        Number of recent outcomes kept in :attr:`history`.
    """

    def __init__(
        self,
        store: TaskStore,
        client: RecordClient,
        *,
        persist_timeout: Optional[float] = None,
        history_size: int = DEFAULT_HISTORY_SIZE,
    ) -> None:
        self.store = store
        self.client = client
        self.persist_timeout = persist_timeout if persist_timeout else None
        self.history: deque[MoveOutcome] = deque(maxlen=max(1, history_size))
        self._lock = asyncio.Lock()
        self._state = MoveState.IDLE

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> MoveState:
        """State of the current move, or the terminal state of the last one."""
        return self._state

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def subscribe(self, renderer: Renderer) -> Callable[[], None]:
        """Send the grouped board to *renderer* after every store change."""

        def _render(tasks: list[Task]) -> None:
            renderer(group(tasks))

        _render.__name__ = getattr(renderer, "__name__", "renderer")
        return self.store.subscribe(_render)

    def board(self) -> dict[Lane, list[Task]]:
        return group(self.store.get_all())

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------

    async def move(self, task_id: int, lane: Any, index: int) -> MoveOutcome:
        """Move a task to *index* within *lane*.

        Raises:
            InvalidMoveError: malformed intent; the store is untouched.
            NotFoundError: the task is not on the board; the store is untouched.
            PersistenceError: the record service failed; the board was rolled back.
        """
        intent = _validate_intent(task_id, lane, index)
        async with self._lock:
            outcome = await self._move_locked(intent)
        self.history.append(outcome)
        return outcome

    async def _move_locked(self, intent: MoveIntent) -> MoveOutcome:
        snapshot = self.store.get_all()
        moving = next((t for t in snapshot if t.id == intent.task_id), None)
        if moving is None:
            raise NotFoundError(intent.task_id)

        grouped = group(snapshot)
        source_lane = lane_of(moving)
        source_index = next(i for i, t in enumerate(grouped[source_lane]) if t.id == moving.id)
        destination = [t for t in grouped[intent.lane] if t.id != moving.id]
        # Dropping past the end of a lane means "last".
        target_index = min(intent.index, len(destination))

        if intent.lane == source_lane and target_index == source_index:
            self._state = MoveState.IDLE
            logger.debug("Move of task {} is a no-op ({} #{})", moving.id, source_lane.value, source_index)
            return MoveOutcome(intent, MoveState.IDLE, source_lane, source_index, order_key=moving.order_key, task=moving)

        self._state = MoveState.APPLYING
        key = allocate(destination, target_index)
        if not is_between(key, destination, target_index):
            logger.warning(
                "Order key {} for task {} collides with its neighbours in {}; lane needs rebalancing",
                key, moving.id, intent.lane.value,
            )
        fields = {"status": intent.lane.value, "order_key": key}
        self.store.replace_all([t.copy(**fields) if t.id == moving.id else t for t in snapshot])

        self._state = MoveState.PERSISTING
        try:
            persisted = await self._persist(moving.id, fields)
        except asyncio.CancelledError:
            self._rollback(snapshot, moving.id, "cancelled")
            raise
        except Exception as exc:
            self._rollback(snapshot, moving.id, str(exc))
            self.history.append(
                MoveOutcome(intent, MoveState.ROLLED_BACK, source_lane, source_index, order_key=key, error=str(exc))
            )
            if isinstance(exc, PersistenceError):
                raise
            raise PersistenceError(f"Failed to save move of task {moving.id}: {exc}", task_id=moving.id) from exc

        self._state = MoveState.COMMITTED
        logger.info(
            "Moved task {} from {} #{} to {} #{} (order_key={})",
            moving.id, source_lane.value, source_index, intent.lane.value, target_index, key,
        )
        return MoveOutcome(intent, MoveState.COMMITTED, source_lane, source_index, order_key=key, task=persisted)

    async def _persist(self, task_id: int, fields: dict[str, Any]) -> Task:
        return await self._bounded(self.client.update_task(task_id, dict(fields)), task_id)

    async def _bounded(self, call: Awaitable[T], task_id: Optional[int]) -> T:
        if self.persist_timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self.persist_timeout)
        except asyncio.TimeoutError as exc:
            raise PersistenceError(
                f"Timed out after {self.persist_timeout}s saving task {task_id}", task_id=task_id
            ) from exc

    async def _save(self, call: Awaitable[T], action: str, task_id: Optional[int] = None) -> T:
        """Await a record-service call that has no optimistic state to undo."""
        try:
            return await self._bounded(call, task_id)
        except PersistenceError:
            raise
        except Exception as exc:
            target = "task" if task_id is None else f"task {task_id}"
            raise PersistenceError(f"Failed to {action} {target}: {exc}", task_id=task_id) from exc

    def _rollback(self, snapshot: list[Task], task_id: int, reason: str) -> None:
        self.store.replace_all(snapshot)
        self._state = MoveState.ROLLED_BACK
        logger.warning("Rolled back board after failed save of task {}: {}", task_id, reason)

    # ------------------------------------------------------------------
    # Board maintenance
    # ------------------------------------------------------------------

    async def reload(self) -> list[Task]:
        """Replace the board with the record service's current task list."""
        async with self._lock:
            tasks = await self.client.fetch_tasks()
            self.store.replace_all(tasks)
        logger.info("Reloaded board with {} tasks", len(tasks))
        return tasks

    async def rebalance_lane(self, lane: Any) -> list[tuple[int, float]]:
        """Respace *lane* at evenly spaced keys and persist every changed key.

        The respaced lane is shown immediately. If a save fails, the board
        goes back to the pre-rebalance snapshot with the keys the service
        already confirmed applied on top, so the store keeps the order the
        service now holds, and :class:`PersistenceError` is raised.
        """
        parsed = Lane.parse(lane)
        if parsed is None:
            raise InvalidMoveError(f"Unknown lane {lane!r}")
        async with self._lock:
            snapshot = self.store.get_all()
            changes = rebalance(group(snapshot)[parsed])
            if not changes:
                return []
            self._state = MoveState.APPLYING
            self.store.replace_all(_with_keys(snapshot, dict(changes)))
            self._state = MoveState.PERSISTING
            saved: dict[int, float] = {}
            for task_id, key in changes:
                try:
                    await self._persist(task_id, {"order_key": key})
                except asyncio.CancelledError:
                    self._rollback(_with_keys(snapshot, saved), task_id, "cancelled")
                    raise
                except Exception as exc:
                    self._rollback(_with_keys(snapshot, saved), task_id, str(exc))
                    if isinstance(exc, PersistenceError):
                        raise
                    raise PersistenceError(f"Failed to rebalance {parsed.value}: {exc}", task_id=task_id) from exc
                saved[task_id] = key
            self._state = MoveState.COMMITTED
        logger.info("Rebalanced {} keys in lane {}", len(changes), parsed.value)
        return changes

    async def sweep_overdue(self, today: Optional[date] = None) -> list[MoveOutcome]:
        """Move open tasks past their due date to the end of the overdue lane.

        Each task goes through :meth:`move`; the sweep stops at the first
        failure, which is raised after earlier moves have committed.
        """
        today = today or date.today()
        outcomes: list[MoveOutcome] = []
        for task in find_overdue(self.store.get_all(), today):
            end = len(self.board()[Lane.OVERDUE])
            outcomes.append(await self.move(task.id, Lane.OVERDUE, end))
        if outcomes:
            logger.info("Swept {} overdue tasks", len(outcomes))
        return outcomes

    # ------------------------------------------------------------------
    # Task edits
    # ------------------------------------------------------------------
    #
    # Creates, edits and deletes hold the move lock and change the store only
    # after the service confirms.

    async def create_task(self, draft: Task) -> Task:
        """Save *draft* at the end of the to-do lane and add it to the board.

        The draft's ``id``, ``status`` and ``order_key`` are ignored; the
        service assigns the id and the key is allocated under the lock.
        """
        if not draft.title.strip():
            raise InvalidTaskError("Task title cannot be empty")
        async with self._lock:
            to_do = group(self.store.get_all())[Lane.TO_DO]
            draft = draft.copy(status=Lane.TO_DO.value, order_key=allocate(to_do, len(to_do)))
            created = await self._save(self.client.create_task(draft), "create")
            created = created.copy(
                farm_name=created.farm_name or draft.farm_name,
                crop_name=created.crop_name or draft.crop_name,
            )
            self.store.add(created)
        logger.info("Created task {}: {} (order_key={})", created.id, created.title, created.order_key)
        return created

    async def update_task(self, task_id: int, changes: dict[str, Any]) -> Task:
        """Save an edit of a task's payload fields and apply it to the board.

        Raises:
            InvalidTaskError: *changes* names a field that is not editable or
                carries a malformed value; nothing is saved.
            NotFoundError: the task is not on the board.
            PersistenceError: the service rejected the edit; the board is unchanged.
        """
        changes = _validate_changes(changes)
        async with self._lock:
            current = self.store.get(task_id)
            if current is None:
                raise NotFoundError(task_id)
            record = current.copy(**changes).to_record()
            payload = {column: record[column] for name in changes for column in EDITABLE_FIELDS[name]}
            if payload:
                await self._save(self.client.update_task(task_id, payload), "update", task_id)
            updated = self.store.apply_local(task_id, changes)
        logger.info("Updated task {}: {}", task_id, sorted(changes))
        return updated

    async def delete_task(self, task_id: int) -> None:
        """Delete a task from the service, then drop it from the board."""
        async with self._lock:
            if task_id not in self.store:
                raise NotFoundError(task_id)
            await self._save(self.client.delete_task(task_id), "delete", task_id)
            self.store.remove(task_id)
        logger.info("Deleted task {}", task_id)
