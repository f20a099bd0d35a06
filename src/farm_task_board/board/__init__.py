"""Task board core: model, store, lane grouping, order keys and moves.

The board groups farm tasks into four fixed lanes and lets the view drag
them around. Moves are applied optimistically and rolled back as a whole
when the record service refuses them.
"""

from .coordinator import MoveCoordinator, MoveIntent, MoveOutcome, MoveState
from .grouping import find_overdue, group, lane_of, status_counts
from .model import Lane, Task, TaskPriority, TaskType
from .ordering import allocate, needs_rebalance, rebalance
from .store import TaskStore

__all__ = [
    "Lane",
    "MoveCoordinator",
    "MoveIntent",
    "MoveOutcome",
    "MoveState",
    "Task",
    "TaskPriority",
    "TaskStore",
    "TaskType",
    "allocate",
    "find_overdue",
    "group",
    "lane_of",
    "needs_rebalance",
    "rebalance",
    "status_counts",
]
