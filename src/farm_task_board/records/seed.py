"""Load task rows from a YAML seed file."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_seed_records(path: Path) -> list[dict[str, Any]]:
    """Return the task rows stored in *path*.

    The file holds ``{"version": 1, "tasks": [...]}`` where each entry is a
    record-storage row (``Id``, ``title``, ``dueDate`` ...). A missing file
    yields ``[]``; a malformed one raises ``ValueError``.
    """
    if not path.exists():
        return []
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"{path.name}: YAMLError: {exc}") from exc
    if data is None:
        return []
    if not isinstance(data, dict) or not isinstance(data.get("tasks", []), list):
        raise ValueError(f"{path.name}: expected a mapping with a 'tasks' list")
    return [row for row in data.get("tasks", []) if isinstance(row, dict)]
