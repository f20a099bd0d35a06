"""Provide the public `farm_task_board` package exports."""

from __future__ import annotations

from .board import (
    Lane,
    MoveCoordinator,
    MoveOutcome,
    MoveState,
    Task,
    TaskStore,
    allocate,
    group,
)
from .errors import BoardError, InvalidMoveError, InvalidTaskError, NotFoundError, PersistenceError

__all__ = [
    "BoardError",
    "InvalidMoveError",
    "InvalidTaskError",
    "Lane",
    "MoveCoordinator",
    "MoveOutcome",
    "MoveState",
    "NotFoundError",
    "PersistenceError",
    "Task",
    "TaskStore",
    "allocate",
    "group",
]
