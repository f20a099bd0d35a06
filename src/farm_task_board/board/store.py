"""In-memory task store with thread-safe locking.

The store owns the authoritative list of tasks shown on the board. Reads
hand out detached copies; the only ways to change the list are
:meth:`TaskStore.apply_local` and :meth:`TaskStore.replace_all`, plus the
CRUD hooks :meth:`TaskStore.add` / :meth:`TaskStore.remove`.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Iterable, Optional

from loguru import logger

from ..errors import NotFoundError
from .grouping import lane_of
from .model import Lane, Task

Listener = Callable[[list[Task]], None]


class TaskStore:
    """Thread-safe, in-memory store for :class:`Task` objects.

    Parameters
    ----------
    tasks:
        Optional initial task list (copied).
    """

    def __init__(self, tasks: Optional[Iterable[Task]] = None) -> None:
        self._lock = threading.RLock()
        self._tasks: list[Task] = []
        self._index: dict[int, int] = {}
        self._listeners: list[Listener] = []
        self._version = 0
        if tasks is not None:
            self._set(tasks)

    # -- internal helpers ---------------------------------------------------

    def _set(self, tasks: Iterable[Task]) -> None:
        copied = [t.copy() for t in tasks]
        index: dict[int, int] = {}
        for i, t in enumerate(copied):
            if t.id in index:
                raise ValueError(f"Task {t.id} appears more than once")
            index[t.id] = i
        self._tasks = copied
        self._index = index

    def _snapshot(self) -> list[Task]:
        return [t.copy() for t in self._tasks]

    def _changed(self) -> list[Task]:
        """Bump the version and return a snapshot for listeners. Lock must be held."""
        self._version += 1
        return self._snapshot()

    def _notify(self, snapshot: list[Task]) -> None:
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Board listener {} failed", getattr(listener, "__name__", listener))

    # -- reads --------------------------------------------------------------

    @property
    def version(self) -> int:
        """Monotonic counter bumped on every mutation."""
        with self._lock:
            return self._version

    def get_all(self) -> list[Task]:
        """Return a snapshot of every task in arrival order."""
        with self._lock:
            return self._snapshot()

    def get(self, task_id: int) -> Optional[Task]:
        with self._lock:
            idx = self._index.get(task_id)
            return self._tasks[idx].copy() if idx is not None else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        with self._lock:
            return task_id in self._index

    def find(
        self,
        *,
        search: Optional[str] = None,
        lane: Optional[str] = None,
        farm_id: Optional[int] = None,
        crop_id: Optional[int] = None,
        completed: Optional[bool] = None,
    ) -> list[Task]:
        """Filter the current tasks; *search* matches title, farm or crop name."""
        wanted_lane = Lane.parse(lane) if lane else None
        q = search.lower() if search else None
        out: list[Task] = []
        with self._lock:
            for t in self._tasks:
                if wanted_lane is not None and lane_of(t) != wanted_lane:
                    continue
                if farm_id is not None and t.farm_id != farm_id:
                    continue
                if crop_id is not None and t.crop_id != crop_id:
                    continue
                if completed is not None and t.completed != completed:
                    continue
                if q:
                    haystacks = (t.title, t.farm_name or "", t.crop_name or "")
                    if not any(q in h.lower() for h in haystacks):
                        continue
                out.append(t.copy())
        return out

    # -- mutations ----------------------------------------------------------

    def replace_all(self, tasks: Iterable[Task]) -> None:
        """Swap in a complete task list (optimistic apply, rollback, reload)."""
        with self._lock:
            self._set(tasks)
            snapshot = self._changed()
        self._notify(snapshot)

    def apply_local(self, task_id: int, patch: dict[str, Any]) -> Task:
        """Update one task in memory only and return the updated copy.

        Raises:
            NotFoundError: *task_id* is not in the store.
            ValueError: *patch* touches ``id`` or names an unknown field.
        """
        if "id" in patch:
            raise ValueError("Task id is immutable")
        unknown = set(patch) - Task.field_names()
        if unknown:
            raise ValueError(f"Unknown task fields: {sorted(unknown)}")
        with self._lock:
            idx = self._index.get(task_id)
            if idx is None:
                raise NotFoundError(task_id)
            updated = self._tasks[idx].copy(**patch)
            self._tasks[idx] = updated
            snapshot = self._changed()
        self._notify(snapshot)
        return updated.copy()

    def add(self, task: Task) -> Task:
        with self._lock:
            if task.id in self._index:
                raise ValueError(f"Task {task.id} already exists")
            self._index[task.id] = len(self._tasks)
            self._tasks.append(task.copy())
            snapshot = self._changed()
        self._notify(snapshot)
        return task.copy()

    def remove(self, task_id: int) -> bool:
        """Drop a task deleted by the CRUD layer. Returns False if absent."""
        with self._lock:
            idx = self._index.pop(task_id, None)
            if idx is None:
                return False
            self._tasks.pop(idx)
            self._index = {t.id: i for i, t in enumerate(self._tasks)}
            snapshot = self._changed()
        self._notify(snapshot)
        return True

    # -- listeners ----------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with a fresh snapshot after every mutation.

        Returns a function that removes the listener again.
        """
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe
