"""Task model for the farm task board.

A task carries two fields the board cares about (``status`` selects the
lane, ``order_key`` the position inside it) and an opaque payload that is
passed through untouched: title, type, due date, priority, farm and crop
association, notes.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Lane(str, Enum):
    """The four fixed board lanes, in display order."""

    TO_DO = "to_do"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"

    @classmethod
    def parse(cls, value: Any) -> Optional["Lane"]:
        """Return the lane for *value*, or None when it is not a lane."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            return None


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskType(str, Enum):
    """Kind of field work a task represents."""

    WATERING = "watering"
    FERTILIZING = "fertilizing"
    HARVESTING = "harvesting"
    PLANTING = "planting"
    WEEDING = "weeding"
    OTHER = "other"


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------

def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _lookup(value: Any) -> tuple[Optional[int], Optional[str]]:
    """Split a record-storage lookup field into ``(id, name)``.

    Lookup fields arrive either as a bare id or as ``{"Id": .., "Name": ..}``.
    """
    if value is None or value == "":
        return None, None
    if isinstance(value, dict):
        raw_id = value.get("Id")
        return (int(raw_id) if raw_id is not None else None), value.get("Name")
    return int(value), None


def _coerce(enum_cls: type[Enum], raw: Any, default: Enum) -> Enum:
    if raw is None:
        return default
    if isinstance(raw, enum_cls):
        return raw
    try:
        return enum_cls(str(raw))
    except (ValueError, KeyError):
        return default


# ---------------------------------------------------------------------------
# Task dataclass
# ---------------------------------------------------------------------------

@dataclass
class Task:
    """A single task card on the board.

    ``status`` is kept as the raw string received from the record service so
    that an unrecognized value survives loading; the grouper decides which
    lane such a task lands in.
    """

    id: int
    title: str = ""
    status: str = Lane.TO_DO.value
    order_key: float = 0.0

    # Opaque payload
    task_type: TaskType = TaskType.OTHER
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[str] = None
    completed: bool = False
    notes: str = ""
    farm_id: Optional[int] = None
    crop_id: Optional[int] = None
    farm_name: Optional[str] = None
    crop_name: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    created_at: str = field(default_factory=_now_iso)
    metadata: dict[str, Any] = field(default_factory=dict)

    def copy(self, **changes: Any) -> "Task":
        """Return a detached copy, optionally with *changes* applied."""
        clone = replace(self, tags=list(self.tags), metadata=dict(self.metadata))
        return replace(clone, **changes) if changes else clone

    @classmethod
    def field_names(cls) -> set[str]:
        return {f.name for f in fields(cls)}

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict for JSON / YAML."""
        data: dict[str, Any] = {}
        for k, v in asdict(self).items():
            data[k] = v.value if isinstance(v, Enum) else v
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Deserialize from a plain dict, coercing enums gracefully."""
        d = dict(data)
        if d.get("id") is None:
            raise ValueError("Task dict requires an 'id'")
        status = d.get("status")
        return cls(
            id=int(d["id"]),
            title=str(d.get("title") or ""),
            status=status.value if isinstance(status, Lane) else str(status or Lane.TO_DO.value),
            order_key=float(d.get("order_key") or 0.0),
            task_type=_coerce(TaskType, d.get("task_type"), TaskType.OTHER),  # type: ignore[arg-type]
            priority=_coerce(TaskPriority, d.get("priority"), TaskPriority.MEDIUM),  # type: ignore[arg-type]
            due_date=d.get("due_date"),
            completed=bool(d.get("completed", False)),
            notes=str(d.get("notes") or ""),
            farm_id=d.get("farm_id"),
            crop_id=d.get("crop_id"),
            farm_name=d.get("farm_name"),
            crop_name=d.get("crop_name"),
            tags=list(d.get("tags") or []),
            created_at=str(d.get("created_at") or _now_iso()),
            metadata=dict(d.get("metadata") or {}),
        )

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Task":
        """Build a task from a record-storage row.

        Rows use the storage service's field names (``Id``, ``dueDate``,
        ``farmId`` ...). A row without ``status`` derives one from the
        ``completed`` flag.
        """
        farm_id, farm_name = _lookup(record.get("farmId"))
        crop_id, crop_name = _lookup(record.get("cropId"))
        completed = bool(record.get("completed", False))
        status = record.get("status")
        if not status:
            status = Lane.COMPLETED.value if completed else Lane.TO_DO.value
        tags_raw = record.get("Tags") or ""
        tags = [t.strip() for t in tags_raw.split(",") if t.strip()] if isinstance(tags_raw, str) else list(tags_raw)
        due = record.get("dueDate")
        return cls(
            id=int(record["Id"]),
            title=str(record.get("title") or record.get("Name") or ""),
            status=str(status),
            order_key=float(record.get("order_key") or 0.0),
            task_type=_coerce(TaskType, record.get("type"), TaskType.OTHER),  # type: ignore[arg-type]
            priority=_coerce(TaskPriority, record.get("priority"), TaskPriority.MEDIUM),  # type: ignore[arg-type]
            due_date=str(due).split("T")[0] if due else None,
            completed=completed,
            notes=str(record.get("notes") or ""),
            farm_id=farm_id,
            crop_id=crop_id,
            farm_name=farm_name,
            crop_name=crop_name,
            tags=tags,
            created_at=str(record.get("CreatedOn") or _now_iso()),
        )

    def to_record(self) -> dict[str, Any]:
        """Inverse of :meth:`from_record` for the updateable fields."""
        return {
            "Id": self.id,
            "Name": self.title,
            "Tags": ",".join(self.tags),
            "title": self.title,
            "type": self.task_type.value,
            "dueDate": self.due_date,
            "completed": self.completed,
            "priority": self.priority.value,
            "notes": self.notes,
            "farmId": self.farm_id,
            "cropId": self.crop_id,
            "status": self.status,
            "order_key": self.order_key,
        }


# Task fields a user can edit outside of a move, with the record-storage
# columns each one is saved to. ``farm_name`` / ``crop_name`` are display
# copies of the lookups and are kept locally only.
EDITABLE_FIELDS: dict[str, tuple[str, ...]] = {
    "title": ("title", "Name"),
    "task_type": ("type",),
    "priority": ("priority",),
    "due_date": ("dueDate",),
    "completed": ("completed",),
    "notes": ("notes",),
    "farm_id": ("farmId",),
    "crop_id": ("cropId",),
    "tags": ("Tags",),
    "farm_name": (),
    "crop_name": (),
}
