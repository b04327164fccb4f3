"""Image library maintenance: duplicate resolution and date-based sorting.

Dependencies are injected through narrow protocols; there is no global state.
"""

__version__ = "1.0.0"

# Core exports
from .core.config import (
    ActionStrategy,
    DateConfig,
    DateStrategy,
    DedupConfig,
    ExifStrategy,
    KeepStrategy,
    SortConfig,
)
from .core.errors import (
    ConfigurationError,
    FingerprintMismatchError,
    ImageManagerError,
    NoDateFound,
    ReadError,
    RelocationError,
    StatError,
)
from .core.models import DuplicateGroup, FileRecord, ItemState, TaskOutcome
from .core.protocols import FileSystem, Localizer, Logger, ProgressReporter

# Engine exports
from .engines.fingerprint import FingerprintComputer
from .engines.metadata import DateResolver, ExifReader

# Service exports
from .services.deduplicator import Deduplicator
from .services.sorter import Sorter
from .services.pool import StopToken, WorkerPool

# Infrastructure exports
from .infrastructure.filesystem import LocalFileSystem

__all__ = [
    # Core
    "ActionStrategy",
    "DateConfig",
    "DateStrategy",
    "DedupConfig",
    "ExifStrategy",
    "KeepStrategy",
    "SortConfig",
    "ConfigurationError",
    "FingerprintMismatchError",
    "ImageManagerError",
    "NoDateFound",
    "ReadError",
    "RelocationError",
    "StatError",
    "DuplicateGroup",
    "FileRecord",
    "ItemState",
    "TaskOutcome",
    "FileSystem",
    "Localizer",
    "Logger",
    "ProgressReporter",
    # Engines
    "FingerprintComputer",
    "DateResolver",
    "ExifReader",
    # Services
    "Deduplicator",
    "Sorter",
    "StopToken",
    "WorkerPool",
    # Infrastructure
    "LocalFileSystem",
]
