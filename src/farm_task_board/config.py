"""Load optional board configuration from `.farm_board/config.yaml`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from .constants import (
    CONFIG_FILE,
    DEFAULT_HISTORY_SIZE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PERSIST_TIMEOUT_SECONDS,
    STATE_DIR_NAME,
)

VALID_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class BoardConfig:
    log_level: str = DEFAULT_LOG_LEVEL
    persist_timeout_seconds: Optional[float] = DEFAULT_PERSIST_TIMEOUT_SECONDS
    seed_file: Optional[Path] = None
    history_size: int = DEFAULT_HISTORY_SIZE


def _load_yaml_with_error(path: Path) -> tuple[dict[str, Any], str | None]:
    """Load a YAML mapping and return ``(data, error_message)``."""
    if not path.exists():
        return {}, None
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        return {}, f"{path.name}: {exc.__class__.__name__}: {exc}"
    except yaml.YAMLError as exc:
        return {}, f"{path.name}: YAMLError: {exc}"
    if data is None:
        return {}, None
    if not isinstance(data, dict):
        return {}, f"{path.name}: expected object, got {type(data).__name__}"
    return data, None


def _timeout(raw: Any) -> Optional[float]:
    if raw is None:
        return None
    value = float(raw)
    return value if value > 0 else None


def parse_board_config(data: dict[str, Any], base_dir: Path) -> BoardConfig:
    """Build a :class:`BoardConfig` from a raw mapping.

    Args:
        data: Parsed config mapping.
        base_dir: Directory relative ``seed_file`` paths resolve against.

    Returns:
        The config; invalid values fall back to their defaults.
    """
    config = BoardConfig()
    level = data.get("log_level")
    if isinstance(level, str) and level.upper() in VALID_LOG_LEVELS:
        config.log_level = level.upper()
    if "persist_timeout_seconds" in data:
        try:
            config.persist_timeout_seconds = _timeout(data["persist_timeout_seconds"])
        except (TypeError, ValueError):
            pass
    seed = data.get("seed_file")
    if isinstance(seed, str) and seed:
        path = Path(seed).expanduser()
        config.seed_file = path if path.is_absolute() else (base_dir / path)
    size = data.get("history_size")
    if isinstance(size, int) and not isinstance(size, bool) and size > 0:
        config.history_size = size
    return config


def load_board_config(project_dir: Path) -> tuple[BoardConfig, str | None]:
    """Load the optional board config file.

    Args:
        project_dir: Directory that holds the ``.farm_board/`` state dir.

    Returns:
        A tuple of `(config, error_message)`. A missing file gives the
        defaults and no error; an unreadable one gives the defaults and the
        error.
    """
    project_dir = project_dir.resolve()
    path = project_dir / STATE_DIR_NAME / CONFIG_FILE
    data, err = _load_yaml_with_error(path)
    if err:
        return BoardConfig(), err
    return parse_board_config(data, project_dir), None
