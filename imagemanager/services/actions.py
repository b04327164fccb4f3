"""Action execution: dry-run logging, move to trash and copy."""
from __future__ import annotations

import itertools
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from ..core.config import ActionStrategy
from ..core.errors import RelocationError
from ..core.models import ActionResult, DuplicateGroup, FileRecord, ItemState
from ..core.protocols import FileSystem
from .dryrun_log import DryRunLog

logger = logging.getLogger(__name__)

UNSORTED_DIR = "unsorted"
COPY_CHUNK_SIZE = 1024 * 1024


class DirectoryLocks:
    """One lock per destination directory.

    Picking a free name and claiming it must happen atomically for each
    directory, otherwise two workers could choose the same ``name_1.jpg``.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Path, threading.Lock] = {}

    def for_dir(self, directory: Path) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(directory)
            if lock is None:
                lock = self._locks[directory] = threading.Lock()
            return lock


def candidate_names(directory: Path, name: str) -> Iterator[Path]:
    """Yield name, name_1, name_2, ... inside directory, without end."""
    yield directory / name
    stem, suffix = Path(name).stem, Path(name).suffix
    for counter in itertools.count(1):
        yield directory / f"{stem}_{counter}{suffix}"


def unique_target(fs: FileSystem, directory: Path, name: str) -> Path:
    """First free path for name in directory."""
    for candidate in candidate_names(directory, name):
        if not fs.exists(candidate):
            return candidate


def files_identical(fs: FileSystem, first: Path, second: Path, chunk_size: int = COPY_CHUNK_SIZE) -> bool:
    """Byte-for-byte comparison, size first."""
    if fs.stat(first).size != fs.stat(second).size:
        return False
    with fs.open(first) as a, fs.open(second) as b:
        while True:
            chunk_a = a.read(chunk_size)
            if chunk_a != b.read(chunk_size):
                return False
            if not chunk_a:
                return True


def destination_for(destination_root: Path, record: FileRecord) -> Path:
    """Build ``root/YYYY/MM/DD/<name>``, or ``root/unsorted/<name>`` without a date."""
    date: Optional[datetime] = record.resolved_date
    if date is None:
        return destination_root / UNSORTED_DIR / record.name
    return destination_root / f"{date.year:04d}" / f"{date.month:02d}" / f"{date.day:02d}" / record.name


class DryRunAction:
    """Logs what would happen. Never touches the file itself."""

    def __init__(self, log: DryRunLog, verb: str):
        """Initialize the action.

        Args:
            log: Open dry-run log.
            verb: Name of the action a real run would take.
        """
        self._log = log
        self._verb = verb

    def apply(self, record: FileRecord, reference: Path, reason: str = "") -> ActionResult:
        self._log.write(record.path, self._verb, reference, reason)
        return ActionResult(record=record, state=ItemState.LOGGED, destination=reference)


class MoveToTrashAction:
    """Renames a file into the trash directory."""

    def __init__(self, fs: FileSystem, trash_dir: Path, locks: DirectoryLocks):
        self._fs = fs
        self._trash_dir = trash_dir
        self._locks = locks

    def apply(self, record: FileRecord, reference: Path, reason: str = "") -> ActionResult:
        """Move record into the trash; ``reference`` is the survivor it duplicates."""
        target = self._trash_dir / record.name
        try:
            self._fs.mkdir_all(self._trash_dir)
            with self._locks.for_dir(self._trash_dir):
                target = unique_target(self._fs, self._trash_dir, record.name)
                self._fs.rename(record.path, target)
        except OSError as e:
            return ActionResult(
                record=record,
                state=ItemState.FAILED,
                error=RelocationError(record.path, target, e),
            )
        logger.debug("Moved %s to %s (duplicate of %s)", record.path, target, reference)
        return ActionResult(record=record, state=ItemState.RELOCATED, destination=target)


class CopyAction:
    """Copies a file to its destination, leaving the source in place."""

    def __init__(self, fs: FileSystem, locks: DirectoryLocks, chunk_size: int = COPY_CHUNK_SIZE):
        self._fs = fs
        self._locks = locks
        self._chunk_size = chunk_size

    def apply(self, record: FileRecord, reference: Path, reason: str = "") -> ActionResult:
        """Copy record to ``reference``, numbering the name on collision.

        A byte-identical file at ``reference`` or at any of its numbered
        names means the file was sorted by an earlier run, so nothing is
        copied.
        """
        directory = reference.parent
        target = reference
        try:
            self._fs.mkdir_all(directory)
            with self._locks.for_dir(directory):
                for target in candidate_names(directory, reference.name):
                    if not self._fs.exists(target):
                        break
                    if files_identical(self._fs, record.path, target):
                        return ActionResult(record=record, state=ItemState.SKIPPED, destination=target)
                # Creating the file claims the name; the copy runs outside the lock.
                out = self._fs.create(target)
        except OSError as e:
            return ActionResult(
                record=record,
                state=ItemState.FAILED,
                error=RelocationError(record.path, target, e),
            )

        try:
            with out, self._fs.open(record.path) as src:
                for chunk in iter(lambda: src.read(self._chunk_size), b""):
                    out.write(chunk)
        except OSError as e:
            self._remove_partial(target)
            return ActionResult(
                record=record,
                state=ItemState.FAILED,
                error=RelocationError(record.path, target, e),
            )
        return ActionResult(record=record, state=ItemState.RELOCATED, destination=target)

    def _remove_partial(self, target: Path) -> None:
        try:
            self._fs.remove(target)
        except OSError as e:
            logger.warning("Could not remove partial copy %s: %s", target, e)


class ActionExecutor:
    """Applies the configured action strategy to files.

    The strategy is resolved into one action object at construction, so
    executing an item never looks at strategy names.
    """

    def __init__(
        self,
        fs: FileSystem,
        strategy: ActionStrategy,
        dry_run_log: Optional[DryRunLog] = None,
        trash_dir: Optional[Path] = None,
        locks: Optional[DirectoryLocks] = None,
        dry_run_verb: str = ActionStrategy.MOVE_TO_TRASH.value,
    ):
        """Initialize the executor.

        Args:
            fs: File system to act on.
            strategy: What to do with target files.
            dry_run_log: Required for ``dryRun``.
            trash_dir: Required for ``moveToTrash``.
            locks: Shared per-directory locks.
            dry_run_verb: Action name written to the dry-run log.
        """
        self._fs = fs
        self._strategy = strategy
        self._log = dry_run_log
        locks = locks or DirectoryLocks()

        if strategy is ActionStrategy.DRY_RUN:
            if dry_run_log is None:
                raise ValueError("dryRun needs a dry-run log")
            self._action = DryRunAction(dry_run_log, dry_run_verb)
        elif strategy is ActionStrategy.MOVE_TO_TRASH:
            if trash_dir is None:
                raise ValueError("moveToTrash needs a trash directory")
            self._action = MoveToTrashAction(fs, trash_dir, locks)
        elif strategy is ActionStrategy.COPY:
            self._action = CopyAction(fs, locks)
        else:
            raise ValueError(f"Unsupported action strategy: {strategy}")

    def resolve_group(self, group: DuplicateGroup) -> list[ActionResult]:
        """Keep the survivor and apply the action to every other member.

        A failure on one member does not stop its siblings, and members
        already moved are not rolled back.
        """
        results = [ActionResult(record=group.survivor, state=ItemState.SKIPPED)]
        if self._strategy is ActionStrategy.DRY_RUN:
            self._log.write(group.survivor.path, "keep", None, "survivor")

        for target in group.targets:
            results.append(
                self._action.apply(target, group.survivor.path, "duplicate")
            )
        return results

    def place(self, record: FileRecord, destination: Path, reason: str = "") -> ActionResult:
        """Apply the action to one file bound for ``destination``."""
        return self._action.apply(record, destination, reason)
