"""Exception hierarchy for task board operations."""

from __future__ import annotations

from typing import Optional


class BoardError(Exception):
    """Base class for every error raised by the task board."""


class NotFoundError(BoardError):
    """Raised when a task id is not present in the store."""

    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class InvalidMoveError(BoardError):
    """Raised for a malformed move intent (unknown lane, bad index)."""


class PersistenceError(BoardError):
    """Raised when the record-storage service rejects or cannot take an update."""

    def __init__(self, message: str, task_id: Optional[int] = None) -> None:
        super().__init__(message)
        self.task_id = task_id


class InvalidTaskError(BoardError):
    """Raised for a task create or edit with missing or malformed fields."""
