"""Directory scanning service."""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from ..core.config import DEFAULT_IMAGE_EXTENSIONS, normalize_extensions
from ..core.errors import StatError
from ..core.models import FileRecord
from ..core.protocols import FileSystem

logger = logging.getLogger(__name__)


def is_image(path: Path, extensions: Iterable[str]) -> bool:
    """Check the extension against the allowed set, ignoring case."""
    return path.suffix.lower() in extensions


def _is_under(path: Path, directory: Path) -> bool:
    try:
        path.relative_to(directory)
    except ValueError:
        return False
    return True


@dataclass
class ScanResult:
    """Records found by one scan, plus the files that could not be stat'ed."""
    records: list[FileRecord] = field(default_factory=list)
    failures: list[StatError] = field(default_factory=list)
    skipped_empty: int = 0


class DirectoryScanner:
    """Scans a directory tree for image files.

    Produces FileRecords in a stable order (directories and names sorted)
    so that grouping and dry-run logs are reproducible.
    """

    def __init__(
        self,
        fs: FileSystem,
        allowed_extensions: Iterable[str] = DEFAULT_IMAGE_EXTENSIONS,
        exclude: Iterable[Path] = (),
    ):
        """Initialize the scanner.

        Args:
            fs: File system to walk.
            allowed_extensions: Extensions to keep (case-insensitive).
            exclude: Directories whose contents are never scanned
                (e.g. the trash directory).
        """
        self._fs = fs
        self._extensions = frozenset(normalize_extensions(allowed_extensions))
        self._exclude = tuple(Path(p) for p in exclude)

    def scan(self, root: Path) -> ScanResult:
        """Walk root and stat every matching file.

        Empty files are skipped: they carry no image and every pair of them
        would otherwise count as a duplicate.
        """
        result = ScanResult()
        for path in self._fs.walk(root):
            if not is_image(path, self._extensions):
                continue
            if any(_is_under(path, excluded) for excluded in self._exclude):
                continue
            try:
                st = self._fs.stat(path)
            except OSError as e:
                result.failures.append(StatError(path, e))
                continue
            if st.size == 0:
                result.skipped_empty += 1
                continue
            result.records.append(FileRecord(path=path, size=st.size, mod_time=st.mod_time))

        result.records.sort(key=lambda r: str(r.path))
        logger.debug("Scanned %s: %d files", root, len(result.records))
        return result


def group_by_size(records: Iterable[FileRecord], minimum: int = 2) -> list[FileRecord]:
    """Keep only records whose size is shared by at least ``minimum`` records.

    A file of unique size cannot have a byte-identical twin, so hashing it
    is wasted I/O. Input order is preserved.
    """
    records = list(records)
    sizes = Counter(r.size for r in records)
    return [r for r in records if sizes[r.size] >= minimum]
