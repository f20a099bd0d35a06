"""Shared constants for the farm task board."""

STATE_DIR_NAME = ".farm_board"
CONFIG_FILE = "config.yaml"

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_PERSIST_TIMEOUT_SECONDS = 10.0
DEFAULT_HISTORY_SIZE = 50

# Record-storage table that holds task rows.
TASK_TABLE = "task"
