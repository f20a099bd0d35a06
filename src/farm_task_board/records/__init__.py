"""Record-storage collaborators used by the task board."""

from .client import InMemoryRecordClient, RecordClient
from .seed import load_seed_records

__all__ = ["InMemoryRecordClient", "RecordClient", "load_seed_records"]
