"""Pydantic request / response models for the board API."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field


class CreateTaskRequest(BaseModel):
    title: str
    task_type: str = "other"
    priority: str = "medium"
    due_date: Optional[str] = None
    notes: str = ""
    farm_id: Optional[int] = None
    crop_id: Optional[int] = None
    farm_name: Optional[str] = None
    crop_name: Optional[str] = None
    tags: list[str] = Field(default_factory=list)


class MoveRequest(BaseModel):
    task_id: int
    lane: str
    index: int


class SweepRequest(BaseModel):
    today: Optional[date] = None


class TaskResponse(BaseModel):
    task: dict[str, Any]


class TaskListResponse(BaseModel):
    tasks: list[dict[str, Any]]
    total: int


class BoardResponse(BaseModel):
    lanes: dict[str, list[dict[str, Any]]]
    counts: dict[str, int]
    version: int
    busy: bool


class MoveResponse(BaseModel):
    outcome: dict[str, Any]
    board: BoardResponse


class SweepResponse(BaseModel):
    moved: list[dict[str, Any]]
    board: BoardResponse


class RebalanceResponse(BaseModel):
    lane: str
    changed: dict[str, float]
    board: BoardResponse


class HistoryResponse(BaseModel):
    moves: list[dict[str, Any]]


class UpdateTaskRequest(BaseModel):
    """Partial edit; only the fields present in the body are changed."""

    title: Optional[str] = None
    task_type: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[str] = None
    completed: Optional[bool] = None
    notes: Optional[str] = None
    farm_id: Optional[int] = None
    crop_id: Optional[int] = None
    farm_name: Optional[str] = None
    crop_name: Optional[str] = None
    tags: Optional[list[str]] = None
