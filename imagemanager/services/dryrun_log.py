"""CSV log of the actions a dry run would have taken."""
from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Optional

from ..core.protocols import FileSystem

HEADER = ("path", "action", "survivor_or_destination", "reason")


class DryRunLog:
    """Writes one CSV row per planned action.

    The log is recreated on every run. It is written only from the
    orchestrator's collecting thread, never from workers.
    """

    def __init__(self, fs: FileSystem, path: Path):
        self._fs = fs
        self._path = Path(path)
        self._stream: Optional[io.TextIOWrapper] = None
        self._writer = None
        self.rows = 0

    @property
    def path(self) -> Path:
        return self._path

    def open(self) -> "DryRunLog":
        if self._path.parent != Path("."):
            self._fs.mkdir_all(self._path.parent)
        if self._fs.exists(self._path):
            self._fs.remove(self._path)
        self._stream = io.TextIOWrapper(self._fs.create(self._path), encoding="utf-8", newline="")
        self._writer = csv.writer(self._stream)
        self._writer.writerow(HEADER)
        return self

    def write(self, path: Path, action: str, reference: Optional[Path], reason: str = "") -> None:
        if self._writer is None:
            raise RuntimeError("DryRunLog is not open")
        self._writer.writerow([str(path), action, str(reference) if reference else "", reason])
        self.rows += 1

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None
            self._writer = None

    def __enter__(self) -> "DryRunLog":
        return self.open()

    def __exit__(self, *args) -> None:
        self.close()
