"""Partition tasks into board lanes.

Everything here is a pure function of its input: no store access, no
logging, no mutation of the tasks passed in.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from .model import Lane, Task

# Lanes a task can be swept out of when its due date passes.
_OPEN_LANES = (Lane.TO_DO, Lane.IN_PROGRESS)


def lane_of(task: Task) -> Lane:
    """Return the lane *task* belongs to; unknown or missing status means to-do."""
    return Lane.parse(task.status) or Lane.TO_DO


def group(tasks: Iterable[Task]) -> dict[Lane, list[Task]]:
    """Group *tasks* by lane, each lane ordered by ``order_key``.

    All four lanes are always present, in :class:`Lane` order. ``sorted`` is
    stable, so equal keys keep their input order.
    """
    lanes: dict[Lane, list[Task]] = {lane: [] for lane in Lane}
    for task in tasks:
        lanes[lane_of(task)].append(task)
    return {lane: sorted(members, key=lambda t: t.order_key) for lane, members in lanes.items()}


def status_counts(tasks: Iterable[Task]) -> dict[str, int]:
    """Return ``all`` / ``pending`` / ``completed`` counts for the filter bar."""
    items = list(tasks)
    done = sum(1 for t in items if t.completed)
    return {"all": len(items), "pending": len(items) - done, "completed": done}


def _parse_due(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value.split("T")[0])
    except ValueError:
        return None


def find_overdue(tasks: Iterable[Task], today: date) -> list[Task]:
    """Return open tasks whose due date is strictly before *today*.

    Completed tasks and tasks already in the overdue lane are skipped, as
    are tasks with no parseable due date. Board order is preserved.
    """
    grouped = group(tasks)
    out: list[Task] = []
    for lane in _OPEN_LANES:
        for task in grouped[lane]:
            if task.completed:
                continue
            due = _parse_due(task.due_date)
            if due is not None and due < today:
                out.append(task)
    return out
