"""Service layer - scanning, grouping, actions and the task orchestrators."""
from .scanner import DirectoryScanner, group_by_size
from .pool import StopToken, WorkerPool, WorkResult
from .grouper import DuplicateGrouper
from .keep import KeepOldest, KeepSelector, KeepShortestPath, keep_selector_for
from .actions import ActionExecutor, DirectoryLocks
from .dryrun_log import DryRunLog
from .deduplicator import Deduplicator
from .sorter import Sorter

__all__ = [
    "DirectoryScanner",
    "group_by_size",
    "StopToken",
    "WorkerPool",
    "WorkResult",
    "DuplicateGrouper",
    "KeepOldest",
    "KeepSelector",
    "KeepShortestPath",
    "keep_selector_for",
    "ActionExecutor",
    "DirectoryLocks",
    "DryRunLog",
    "Deduplicator",
    "Sorter",
]
