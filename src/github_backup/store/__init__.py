"""On-disk storage: per-item record files and the sync state document."""

from .atomic import dump_json, write_atomic
from .records import RecordStore, UpsertOutcome
from .state import STATE_VERSION, SyncState, SyncStateStore

__all__ = [
    "STATE_VERSION",
    "RecordStore",
    "SyncState",
    "SyncStateStore",
    "UpsertOutcome",
    "dump_json",
    "write_atomic",
]
