"""Sync module - GitHub to local directory synchronization.

Services:
- SyncEngine: walks every item type, stores records, checkpoints cursors
- ItemTypeResult / SyncRunResult: structured run outcomes
"""

from .engine import SyncEngine
from .results import ItemTypeResult, SyncRunResult

__all__ = [
    "ItemTypeResult",
    "SyncEngine",
    "SyncRunResult",
]
