"""Core domain models, configuration and protocols."""
from .protocols import FileStat, FileSystem, Localizer, Logger, ProgressReporter
from .models import (
    ActionResult,
    DateStrategyResult,
    DuplicateGroup,
    FileFailure,
    FileRecord,
    ItemState,
    TaskOutcome,
)
from .config import DateConfig, DedupConfig, SortConfig

__all__ = [
    # Protocols
    "FileStat",
    "FileSystem",
    "Localizer",
    "Logger",
    "ProgressReporter",
    # Models
    "ActionResult",
    "DateStrategyResult",
    "DuplicateGroup",
    "FileFailure",
    "FileRecord",
    "ItemState",
    "TaskOutcome",
    # Config
    "DateConfig",
    "DedupConfig",
    "SortConfig",
]
