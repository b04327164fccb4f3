"""Domain models - immutable data classes."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from .config import DateStrategy


class ItemState(Enum):
    """Where a single file ended up after the action step."""
    PENDING = "pending"
    SKIPPED = "skipped"      # survivor, or already in place
    LOGGED = "logged"        # dry run
    RELOCATED = "relocated"  # moved to trash or copied
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class FileRecord:
    """A file discovered by the scanner.

    ``fingerprint`` and ``resolved_date`` start empty. A worker fills them
    by returning a new record, so a record is never shared for mutation.
    """
    path: Path
    size: int
    mod_time: datetime
    fingerprint: Optional[str] = None
    resolved_date: Optional[datetime] = None

    @property
    def name(self) -> str:
        return self.path.name

    def with_fingerprint(self, fingerprint: str, size: int) -> "FileRecord":
        return replace(self, fingerprint=fingerprint, size=size)

    def with_date(self, resolved: datetime) -> "FileRecord":
        return replace(self, resolved_date=resolved)


@dataclass(frozen=True, slots=True)
class DateStrategyResult:
    """A timestamp and the strategy that produced it."""
    source: DateStrategy
    timestamp: datetime
    field_name: Optional[str] = None  # EXIF field, when source is EXIF


@dataclass(frozen=True, slots=True)
class DuplicateGroup:
    """Files sharing one fingerprint, with the member that is kept."""
    fingerprint: str
    members: tuple[FileRecord, ...]
    survivor: FileRecord

    def __post_init__(self) -> None:
        if len(self.members) < 2:
            raise ValueError("A duplicate group needs at least two members")
        for member in self.members:
            if member.fingerprint != self.fingerprint:
                raise ValueError(f"{member.path} does not share fingerprint {self.fingerprint}")
        if self.survivor not in self.members:
            raise ValueError("Survivor must be a member of its group")

    @property
    def count(self) -> int:
        return len(self.members)

    @property
    def targets(self) -> tuple[FileRecord, ...]:
        """Members the configured action applies to."""
        return tuple(m for m in self.members if m.path != self.survivor.path)


@dataclass(frozen=True, slots=True)
class ActionResult:
    """Outcome of applying an action to one file."""
    record: FileRecord
    state: ItemState
    destination: Optional[Path] = None
    error: Optional[Exception] = None


@dataclass(frozen=True, slots=True)
class FileFailure:
    """A per-file error kept for the run summary."""
    path: Path
    cause: Exception

    @property
    def kind(self) -> str:
        return getattr(self.cause, "key", type(self.cause).__name__)


@dataclass(slots=True)
class TaskOutcome:
    """Mutable statistics for a task run.

    Only the orchestrator's collecting thread writes to it. ``finalize`` is
    called exactly once, after which the outcome is read-only by contract.
    """
    processed_count: int = 0
    duplicates_found: int = 0
    bytes_reclaimed: int = 0
    relocated: int = 0
    cancelled: bool = False
    errors: list[FileFailure] = field(default_factory=list)
    _finalized: bool = False

    def record_error(self, path: Path, cause: Exception) -> None:
        self._check_open()
        self.errors.append(FileFailure(path=Path(path), cause=cause))

    def record_action(self, result: ActionResult) -> None:
        """Fold one action result into the counters."""
        self._check_open()
        if result.state is ItemState.FAILED:
            self.errors.append(FileFailure(path=result.record.path, cause=result.error))
        elif result.state is ItemState.RELOCATED:
            self.relocated += 1

    def finalize(self) -> "TaskOutcome":
        self._check_open()
        self._finalized = True
        return self

    @property
    def finalized(self) -> bool:
        return self._finalized

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def _check_open(self) -> None:
        if self._finalized:
            raise RuntimeError("TaskOutcome has already been finalized")

    def summary(self) -> dict[str, int]:
        return {
            "processed": self.processed_count,
            "duplicates_found": self.duplicates_found,
            "bytes_reclaimed": self.bytes_reclaimed,
            "relocated": self.relocated,
            "errors": self.error_count,
        }
