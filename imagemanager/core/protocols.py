"""Protocol definitions (interfaces) for dependency injection.

The core reaches the outside world only through these three seams.
"""
from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, BinaryIO, Iterator, Mapping, Optional, Protocol


@dataclass(frozen=True, slots=True)
class FileStat:
    """The subset of stat() results the core relies on."""
    size: int
    mod_time: datetime
    birth_time: Optional[datetime] = None  # None where the platform has no birth time
    is_dir: bool = False


class FileSystem(Protocol):
    """File-system capability set.

    Implementations:
    - LocalFileSystem: the real disk
    - MemoryFileSystem (tests): a dict of bytes
    """

    @abstractmethod
    def read_file(self, path: Path) -> bytes:
        """Return the whole content of a (small) file."""
        ...

    @abstractmethod
    def open(self, path: Path) -> BinaryIO:
        """Open a file for binary streaming reads."""
        ...

    @abstractmethod
    def create(self, path: Path) -> BinaryIO:
        """Create a new file for binary writes. Fails if it already exists."""
        ...

    @abstractmethod
    def stat(self, path: Path) -> FileStat:
        """Return file metadata."""
        ...

    @abstractmethod
    def rename(self, source: Path, target: Path) -> None:
        """Move a file. Fails if target already exists."""
        ...

    @abstractmethod
    def mkdir_all(self, path: Path) -> None:
        """Create a directory and any missing parents."""
        ...

    @abstractmethod
    def exists(self, path: Path) -> bool:
        """Whether anything exists at path."""
        ...

    @abstractmethod
    def walk(self, root: Path) -> Iterator[Path]:
        """Yield every regular file below root."""
        ...

    @abstractmethod
    def remove(self, path: Path) -> None:
        """Delete a file; used only to clean up a partial copy."""
        ...


class Logger(Protocol):
    """Log sink used at task boundaries and decision points."""

    @abstractmethod
    def info(self, message: str) -> None:
        ...

    @abstractmethod
    def debug(self, message: str) -> None:
        ...

    @abstractmethod
    def warning(self, message: str) -> None:
        ...

    @abstractmethod
    def error(self, message: str) -> None:
        ...


class ProgressReporter(Logger, Protocol):
    """Logger that can also draw per-phase progress."""

    @abstractmethod
    def start_phase(self, name: str, total: int) -> None:
        """Start a new processing phase."""
        ...

    @abstractmethod
    def advance_phase(self, amount: int = 1) -> None:
        """Advance the current phase by an amount."""
        ...

    @abstractmethod
    def end_phase(self) -> None:
        """Complete current phase."""
        ...


class Localizer(Protocol):
    """Message catalog lookup.

    Returned strings are for display only; no decision may depend on them.
    """

    @abstractmethod
    def translate(self, key: str, params: Optional[Mapping[str, Any]] = None) -> str:
        ...
