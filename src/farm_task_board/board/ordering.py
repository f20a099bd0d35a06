"""Fractional order keys for drag-and-drop within a lane.

A dropped task gets a key between its new neighbours so no other task has to
be renumbered. Repeated drops between the same two neighbours halve the gap
each time; once float precision runs out the midpoint equals a neighbour and
the lane should be respaced with :func:`rebalance`.
"""

from __future__ import annotations

from typing import Sequence

from .model import Task

KEY_STEP = 1.0


def allocate(lane_tasks: Sequence[Task], target_index: int) -> float:
    """Return the order key for a task dropped at *target_index*.

    Args:
        lane_tasks: Destination lane in display order, without the moved task.
        target_index: Position the task should occupy in that list.

    Returns:
        ``first - 1`` at the front, ``last + 1`` at the end, the midpoint of
        the two neighbours otherwise, and ``0`` for an empty lane.
    """
    if not lane_tasks:
        return 0.0
    if target_index <= 0:
        return lane_tasks[0].order_key - KEY_STEP
    if target_index >= len(lane_tasks):
        return lane_tasks[-1].order_key + KEY_STEP
    before = lane_tasks[target_index - 1].order_key
    after = lane_tasks[target_index].order_key
    return (before + after) / 2.0


def is_between(key: float, lane_tasks: Sequence[Task], target_index: int) -> bool:
    """True when *key* sorts strictly between the neighbours at *target_index*."""
    if target_index > 0 and target_index - 1 < len(lane_tasks):
        if not key > lane_tasks[target_index - 1].order_key:
            return False
    if target_index < len(lane_tasks):
        if not key < lane_tasks[target_index].order_key:
            return False
    return True


def needs_rebalance(keys: Sequence[float]) -> bool:
    """Return True if adjacent keys tie or their midpoint collapses onto one of them."""
    for left, right in zip(keys, keys[1:]):
        if not left < right:
            return True
        mid = (left + right) / 2.0
        if mid == left or mid == right:
            return True
    return False


def rebalance(lane_tasks: Sequence[Task]) -> list[tuple[int, float]]:
    """Respace a lane at ``0, 1, 2, ...`` keeping its current order.

    Returns ``(task_id, new_key)`` pairs only for tasks whose key changes.
    """
    changes: list[tuple[int, float]] = []
    for position, task in enumerate(lane_tasks):
        new_key = position * KEY_STEP
        if task.order_key != new_key:
            changes.append((task.id, new_key))
    return changes
