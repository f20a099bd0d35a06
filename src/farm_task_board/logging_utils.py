"""Configure loguru and summarize board moves for log lines."""

from __future__ import annotations

import json
import sys
from typing import Any

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{module}</cyan>:<cyan>{line}</cyan>\n"
    "{message}"
)


def configure_logging(level: str = "INFO") -> int:
    """Replace loguru's sinks with one stderr sink at *level*.

    Returns:
        The id of the new sink.
    """
    logger.remove()
    return logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)


def summarize_outcome(outcome: Any) -> dict[str, Any]:
    """Render a compact, JSON-friendly summary of a move outcome.

    Args:
        outcome: A ``MoveOutcome`` (or None).

    Returns:
        A dictionary suitable for logging or an API response.
    """
    if outcome is None:
        return {"outcome": None}
    intent = outcome.intent
    d: dict[str, Any] = {
        "task_id": intent.task_id,
        "state": outcome.state.value,
        "from": {"lane": outcome.source_lane.value, "index": outcome.source_index},
        "to": {"lane": intent.lane.value, "index": intent.index},
    }
    if outcome.order_key is not None:
        d["order_key"] = outcome.order_key
    if outcome.error:
        error = str(outcome.error)
        d["error"] = (error[:240] + "…") if len(error) > 240 else error
    return d


def pretty(obj: Any, *, indent: int = 2) -> str:
    """Serialize an object as JSON for readable logs.

    Args:
        obj: Object to serialize.
        indent: Indentation level for JSON output.

    Returns:
        A JSON string when possible; otherwise `str(obj)`.
    """
    try:
        return json.dumps(obj, indent=indent, default=str)
    except Exception:
        return str(obj)
