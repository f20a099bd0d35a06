"""Board API endpoints.

This module provides a FastAPI router that plays the board view's side of
the contract: it serves the grouped lanes and turns drag-and-drop drops into
coordinator moves. It is mounted under ``/api/board`` by :func:`create_app`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from ..board.coordinator import MoveCoordinator
from ..board.grouping import group, status_counts
from ..board.model import Lane, Task, TaskPriority, TaskType
from ..board.store import TaskStore
from ..config import BoardConfig, load_board_config
from ..errors import BoardError, InvalidMoveError, InvalidTaskError, NotFoundError, PersistenceError
from ..logging_utils import summarize_outcome
from ..records.client import InMemoryRecordClient
from ..records.seed import load_seed_records
from .models import (
    BoardResponse,
    CreateTaskRequest,
    HistoryResponse,
    MoveRequest,
    MoveResponse,
    RebalanceResponse,
    SweepRequest,
    SweepResponse,
    TaskListResponse,
    TaskResponse,
    UpdateTaskRequest,
)


def _http_error(exc: BoardError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (InvalidMoveError, InvalidTaskError)):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, PersistenceError):
        return HTTPException(status_code=502, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


def _board_response(coordinator: MoveCoordinator) -> BoardResponse:
    tasks = coordinator.store.get_all()
    lanes = {lane.value: [t.to_dict() for t in members] for lane, members in group(tasks).items()}
    return BoardResponse(
        lanes=lanes,
        counts=status_counts(tasks),
        version=coordinator.store.version,
        busy=coordinator.busy,
    )


# ---------------------------------------------------------------------------
# Router factory
# ---------------------------------------------------------------------------

def create_board_router(get_coordinator: Callable[[], MoveCoordinator]) -> APIRouter:
    """Create the board API router.

    Parameters
    ----------
    get_coordinator:
        A callable returning the :class:`MoveCoordinator` that owns the board.
    """
    router = APIRouter(prefix="/api/board", tags=["board"])

    @router.get("", response_model=BoardResponse)
    async def get_board() -> BoardResponse:
        return _board_response(get_coordinator())

    @router.get("/tasks", response_model=TaskListResponse)
    async def list_tasks(
        search: Optional[str] = Query(None),
        lane: Optional[str] = Query(None),
        farm_id: Optional[int] = Query(None),
        crop_id: Optional[int] = Query(None),
        completed: Optional[bool] = Query(None),
    ) -> TaskListResponse:
        if lane is not None and Lane.parse(lane) is None:
            raise HTTPException(status_code=400, detail=f"Unknown lane {lane!r}")
        tasks = get_coordinator().store.find(
            search=search, lane=lane, farm_id=farm_id, crop_id=crop_id, completed=completed
        )
        data = [t.to_dict() for t in tasks]
        return TaskListResponse(tasks=data, total=len(data))

    @router.post("/tasks", response_model=TaskResponse, status_code=201)
    async def create_task(body: CreateTaskRequest) -> TaskResponse:
        try:
            task_type = TaskType(body.task_type)
            priority = TaskPriority(body.priority)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        draft = Task(
            id=0,
            title=body.title,
            task_type=task_type,
            priority=priority,
            due_date=body.due_date,
            notes=body.notes,
            farm_id=body.farm_id,
            crop_id=body.crop_id,
            farm_name=body.farm_name,
            crop_name=body.crop_name,
            tags=list(body.tags),
        )
        try:
            created = await get_coordinator().create_task(draft)
        except BoardError as exc:
            raise _http_error(exc) from exc
        return TaskResponse(task=created.to_dict())

    @router.patch("/tasks/{task_id}", response_model=TaskResponse)
    async def update_task(task_id: int, body: UpdateTaskRequest) -> TaskResponse:
        changes = body.model_dump(exclude_unset=True)
        if not changes:
            raise HTTPException(status_code=400, detail="No fields to update")
        try:
            updated = await get_coordinator().update_task(task_id, changes)
        except BoardError as exc:
            raise _http_error(exc) from exc
        return TaskResponse(task=updated.to_dict())

    @router.delete("/tasks/{task_id}")
    async def delete_task(task_id: int) -> dict[str, Any]:
        try:
            await get_coordinator().delete_task(task_id)
        except BoardError as exc:
            raise _http_error(exc) from exc
        return {"deleted": True, "task_id": task_id}

    @router.post("/move", response_model=MoveResponse)
    async def move_task(body: MoveRequest) -> MoveResponse:
        coordinator = get_coordinator()
        try:
            outcome = await coordinator.move(body.task_id, body.lane, body.index)
        except BoardError as exc:
            raise _http_error(exc) from exc
        return MoveResponse(outcome=summarize_outcome(outcome), board=_board_response(coordinator))

    @router.post("/reload", response_model=BoardResponse)
    async def reload_board() -> BoardResponse:
        coordinator = get_coordinator()
        try:
            await coordinator.reload()
        except BoardError as exc:
            raise _http_error(exc) from exc
        return _board_response(coordinator)

    @router.post("/lanes/{lane}/rebalance", response_model=RebalanceResponse)
    async def rebalance_lane(lane: str) -> RebalanceResponse:
        coordinator = get_coordinator()
        try:
            changes = await coordinator.rebalance_lane(lane)
        except BoardError as exc:
            raise _http_error(exc) from exc
        return RebalanceResponse(
            lane=lane,
            changed={str(task_id): key for task_id, key in changes},
            board=_board_response(coordinator),
        )

    @router.post("/overdue/sweep", response_model=SweepResponse)
    async def sweep_overdue(body: Optional[SweepRequest] = None) -> SweepResponse:
        coordinator = get_coordinator()
        today = body.today if body else None
        try:
            outcomes = await coordinator.sweep_overdue(today)
        except BoardError as exc:
            raise _http_error(exc) from exc
        return SweepResponse(
            moved=[summarize_outcome(o) for o in outcomes],
            board=_board_response(coordinator),
        )

    @router.get("/history", response_model=HistoryResponse)
    async def get_history() -> HistoryResponse:
        return HistoryResponse(moves=[summarize_outcome(o) for o in get_coordinator().history])

    return router


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def build_coordinator(config: BoardConfig) -> MoveCoordinator:
    """Wire a store, an in-memory record client and a coordinator from *config*."""
    rows = load_seed_records(config.seed_file) if config.seed_file else []
    client = InMemoryRecordClient(rows)
    store = TaskStore(Task.from_record(r) for r in rows)
    return MoveCoordinator(
        store,
        client,
        persist_timeout=config.persist_timeout_seconds,
        history_size=config.history_size,
    )


def create_app(
    coordinator: Optional[MoveCoordinator] = None,
    project_dir: Optional[Path] = None,
    enable_cors: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        coordinator: Coordinator to serve; built from the project config when omitted.
        project_dir: Directory holding ``.farm_board/config.yaml``.
        enable_cors: Whether to enable CORS.

    Returns:
        Configured FastAPI app.
    """
    if coordinator is None:
        config, err = load_board_config(project_dir or Path.cwd())
        if err:
            logger.warning("Ignoring board config: {}", err)
        coordinator = build_coordinator(config)

    app = FastAPI(
        title="Farm Task Board",
        description="Kanban board for farm tasks with optimistic drag-and-drop",
        version="1.0.0",
    )
    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    app.state.coordinator = coordinator
    app.include_router(create_board_router(lambda: app.state.coordinator))
    return app
